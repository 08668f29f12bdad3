from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, Protocol, runtime_checkable

from devhind.core.errors import BlockParseError
from devhind.core.models import (
    Block,
    BlockRecord,
    DumpRecord,
    ProposalRecord,
    ProposalSnapshotRecord,
)


# ---------------------------------------------------------------------------
# IBlockSource
# ---------------------------------------------------------------------------

@runtime_checkable
class IBlockSource(Protocol):
    """
    Abstract supplier of blocks.

    Domain expectations:
    - Blocks are already mapped into `Block` domain models.
    - Each block is handed over once; the indexer keeps no state between them.
    """

    def blocks(self) -> AsyncIterator[Block | BlockParseError]:
        """
        Yield blocks in the order they should be indexed.

        An input that cannot be parsed is yielded as its BlockParseError
        (not raised), so one bad input does not end the stream.

        Implementations:
        - FileBlockSource (NEAR Lake JSON files on disk)
        - In-memory source for testing
        """
        ...


# ---------------------------------------------------------------------------
# IMutationGateway
# ---------------------------------------------------------------------------

@runtime_checkable
class IMutationGateway(Protocol):
    """
    Generic "execute mutation with parameters" endpoint.

    Domain expectations:
    - Returns the response data on success.
    - Raises PersistenceError on rejection or transport failure.
    - No read-before-write and no retry happen behind this call.
    """

    async def execute(self, mutation: str, variables: dict[str, Any]) -> dict[str, Any]:
        ...


# ---------------------------------------------------------------------------
# IRecordSink
# ---------------------------------------------------------------------------

@runtime_checkable
class IRecordSink(Protocol):
    """
    Append-only sink for the three record kinds.

    Domain expectations:
    - Each call either stores the record or raises PersistenceError.
    - Duplicate proposal creation is the sink's concern; callers never
      deduplicate.
    """

    async def create_dump(self, record: DumpRecord) -> None:
        ...

    async def create_proposal(self, record: ProposalRecord) -> None:
        ...

    async def create_proposal_snapshot(self, record: ProposalSnapshotRecord) -> None:
        ...


# ---------------------------------------------------------------------------
# IManifestRepository
# ---------------------------------------------------------------------------

@runtime_checkable
class IManifestRepository(Protocol):
    """
    Append-only journal of block processing status.

    Reading / aggregating coverage is an application-level responsibility.
    """

    async def append(self, record: BlockRecord) -> None:
        """
        Append a new BlockRecord (started/done/failed).

        Implementations:
        - LiveManifest (JSONL file writer)
        """
        ...
