"""Core data models: raw block shapes, derived values and persisted records.

This module defines:
- Raw inputs as handed over by the block source: `Block`, `RawAction`,
  `FunctionCall`, `OtherOperation`, `RawStateChange`.
- Block-scoped derived values: `ExtractedOperation`, `AuthorProposalMap`.
- Append-only records written through a sink: `DumpRecord`,
  `ProposalRecord`, `ProposalSnapshotRecord`.
- Journal and stats types: `BlockRecord`, `DispatchOutcome`, `BlockStats`.

Design notes
------------
- All block-scoped values are frozen; nothing derived from one block
  survives into the next.
- Records know their target table and serialize to the mutation/row shape
  with `to_dict()`.
- Snapshot order for one proposal is (block_height, ts), never insertion
  order: operations of a block are dispatched concurrently.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Any, ClassVar, Literal

Status = Literal["started", "done", "failed"]


# === Raw block shapes ===


@dataclass(slots=True, frozen=True)
class FunctionCall:
    """One function-call sub-operation of an action."""

    method_name: str
    args_base64: str
    gas: int = 0
    deposit: int = 0


@dataclass(slots=True, frozen=True)
class OtherOperation:
    """Any non function-call sub-operation (Transfer, AddKey, ...)."""

    kind: str


Operation = FunctionCall | OtherOperation


@dataclass(slots=True, frozen=True)
class RawAction:
    """One action receipt with its ordered sub-operations."""

    receipt_id: str
    receiver_id: str
    predecessor_id: str
    operations: tuple[Operation, ...] = ()


@dataclass(slots=True, frozen=True)
class RawStateChange:
    """One account-state mutation; key and value are base64 encoded."""

    kind: str  # "data_update", "data_deletion", "account_update", ...
    account_id: str
    key_base64: str | None = None
    value_base64: str | None = None


@dataclass(slots=True, frozen=True)
class Block:
    """The subset of a block the indexer reads."""

    height: int
    timestamp_nanosec: int
    actions: tuple[RawAction, ...] = ()
    state_changes: tuple[RawStateChange, ...] = ()


# === Block-scoped derived values ===


@dataclass(slots=True, frozen=True)
class ExtractedOperation:
    """A qualifying contract call with its decoded JSON arguments."""

    method_name: str
    args: Any
    caller: str
    receipt_id: str


class AuthorProposalMap(Mapping[str, int]):
    """Read-only author -> proposal id mapping recovered from one block.

    Insertion order is kept: `first_author()` is the author of the first
    qualifying diff. A later diff for the same author replaces the id but
    keeps the author's original position.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[tuple[str, int]] = ()) -> None:
        folded: dict[str, int] = {}
        for author, proposal_id in entries:
            folded[author] = proposal_id
        self._entries = folded

    def __getitem__(self, author: str) -> int:
        return self._entries[author]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"AuthorProposalMap({self._entries!r})"

    def first_author(self) -> str | None:
        """Return the first author recorded in the block, or None."""
        return next(iter(self._entries), None)


# === Persisted records ===


def _integral_floats_as_int(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return int(value)
    if isinstance(value, dict):
        return {k: _integral_floats_as_int(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_integral_floats_as_int(v) for v in value]
    return value


def to_json_text(value: Any) -> str:
    """Compact JSON text, non-ASCII kept as-is.

    Integral floats below 1e21 render without a fraction (`100.0` -> `100`),
    matching JavaScript `JSON.stringify`; other floats use Python's
    shortest repr, which differs from JavaScript only in exponent spelling
    (`1e-07` vs `1e-7`).
    """
    return json.dumps(_integral_floats_as_int(value), separators=(",", ":"), ensure_ascii=False)


@dataclass(slots=True, frozen=True)
class DumpRecord:
    """Raw audit row written for every extracted operation."""

    table: ClassVar[str] = "dumps"

    receipt_id: str
    method_name: str
    block_height: int
    block_timestamp: int
    args: str
    author: str | None
    proposal_id: int | None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True, frozen=True)
class ProposalRecord:
    """Proposal creation row; duplicates are the store's concern."""

    table: ClassVar[str] = "proposals"

    id: int
    author_id: str | None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True, frozen=True)
class ProposalSnapshotRecord:
    """Point-in-time content of a proposal, one row per edit event."""

    table: ClassVar[str] = "proposal_snapshots"

    proposal_id: int
    block_height: int
    ts: int
    editor_id: str | None
    labels: list[str] | None
    name: str | None
    category: str | None
    summary: str | None
    description: str | None
    linked_proposals: str  # comma-joined ids, "" when none
    requested_sponsorship_usd_amount: Any
    requested_sponsorship_paid_in_currency: str | None
    requested_sponsor: str | None
    receiver_account: str | None
    supervisor: str | None
    timeline: str | None  # JSON text

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


Record = DumpRecord | ProposalRecord | ProposalSnapshotRecord


# === Dispatch outcome ===


class DispatchStatus(StrEnum):
    DUMP_FAILED = "dump_failed"
    UNCORRELATED = "uncorrelated"
    PROPOSAL_FAILED = "proposal_failed"
    SNAPSHOT_FAILED = "snapshot_failed"
    DUMPED = "dumped"
    SNAPSHOT_RECORDED = "snapshot_recorded"


@dataclass(slots=True, frozen=True)
class DispatchOutcome:
    """Where the per-operation pipeline stopped and what it wrote."""

    receipt_id: str
    method_name: str
    status: DispatchStatus
    written: tuple[Record, ...] = ()
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(kw_only=True)
class BlockStats:
    """Counters for one indexed block."""

    block_height: int
    operations: int = 0
    correlations: int = 0
    dumps: int = 0
    proposals: int = 0
    snapshots: int = 0
    uncorrelated: int = 0
    failures: int = 0

    def add(self, outcome: DispatchOutcome) -> None:
        for record in outcome.written:
            match record:
                case DumpRecord():
                    self.dumps += 1
                case ProposalRecord():
                    self.proposals += 1
                case ProposalSnapshotRecord():
                    self.snapshots += 1
        if outcome.status is DispatchStatus.UNCORRELATED:
            self.uncorrelated += 1
        if outcome.failed:
            self.failures += 1


# === Manifest record ===


@dataclass(slots=True)
class BlockRecord:
    """A single block execution record persisted to the live manifest.

    `block_height` is None for an input that failed before its header was
    read; `source` then names the input.
    """

    block_height: int | None
    status: Status
    error: str | None
    operations: int
    dumps: int
    proposals: int
    snapshots: int
    failures: int
    updated_at: float
    source: str | None = None

    def to_json_line(self) -> str:
        """Serialize as a compact JSON line."""
        return json.dumps(asdict(self), separators=(",", ":")) + "\n"
