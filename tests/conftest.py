import asyncio
from unittest.mock import AsyncMock

import pytest

from devhind.core.errors import PersistenceError
from devhind.core.models import DumpRecord, ProposalRecord, ProposalSnapshotRecord


class RecordingSink:
    """In-memory record sink that can be told to reject writes."""

    def __init__(self) -> None:
        self.dumps: list[DumpRecord] = []
        self.proposals: list[ProposalRecord] = []
        self.snapshots: list[ProposalSnapshotRecord] = []
        self.fail_tables: set[str] = set()
        self.fail_receipts: set[str] = set()
        self.in_flight = 0
        self.max_in_flight = 0
        self.delay_s = 0.0

    async def _enter(self, table: str, receipt_id: str | None = None) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay_s)
        finally:
            self.in_flight -= 1
        if table in self.fail_tables or (receipt_id is not None and receipt_id in self.fail_receipts):
            raise PersistenceError(f"{table} rejected", table=table)

    async def create_dump(self, record: DumpRecord) -> None:
        await self._enter(record.table, record.receipt_id)
        self.dumps.append(record)

    async def create_proposal(self, record: ProposalRecord) -> None:
        await self._enter(record.table)
        self.proposals.append(record)

    async def create_proposal_snapshot(self, record: ProposalSnapshotRecord) -> None:
        await self._enter(record.table)
        self.snapshots.append(record)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def mock_manifest():
    manifest = AsyncMock()
    manifest.append = AsyncMock()
    return manifest
