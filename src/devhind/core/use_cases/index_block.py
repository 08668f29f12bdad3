from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from devhind.constants import SET_BLOCK_HEIGHT_CALLBACK, SNAPSHOT_METHODS
from devhind.core.config import IndexerConfig
from devhind.core.errors import PersistenceError
from devhind.core.interfaces import IRecordSink
from devhind.core.models import (
    AuthorProposalMap,
    Block,
    BlockStats,
    DispatchOutcome,
    DispatchStatus,
    DumpRecord,
    ExtractedOperation,
    ProposalRecord,
    ProposalSnapshotRecord,
    Record,
    to_json_text,
)
from devhind.decoding.operations import extract_operations
from devhind.decoding.state_changes import build_author_proposal_map
from devhind.observability.logging import get_logger

log = get_logger(__name__)

R = TypeVar("R", DumpRecord, ProposalRecord, ProposalSnapshotRecord)


# ---------------------------------------------------------------------------
# Record builders
# ---------------------------------------------------------------------------


def build_dump_record(
    op: ExtractedOperation,
    *,
    author: str | None,
    proposal_id: int | None,
    block_height: int,
    block_timestamp: int,
) -> DumpRecord:
    """Audit row for `op`, written whether or not correlation succeeded."""
    return DumpRecord(
        receipt_id=op.receipt_id,
        method_name=op.method_name,
        block_height=block_height,
        block_timestamp=block_timestamp,
        args=to_json_text(op.args),
        author=author,
        proposal_id=proposal_id,
    )


def _join_linked_proposals(value: Any) -> str:
    if not isinstance(value, (list, tuple)) or not value:
        return ""
    return ",".join("" if v is None else str(v) for v in value)


def _timeline_text(value: Any) -> str | None:
    return None if value is None else to_json_text(value)


def proposal_body(args: Any) -> dict[str, Any]:
    """Return the nested `body` object of edit arguments ({} when absent)."""
    body = args.get("body") if isinstance(args, dict) else None
    return body if isinstance(body, dict) else {}


def build_proposal_snapshot(
    op: ExtractedOperation,
    *,
    proposal_id: int,
    editor_id: str | None,
    block_height: int,
    block_timestamp: int,
) -> ProposalSnapshotRecord:
    """Flatten the proposal body carried by `op` into a snapshot row."""
    body = proposal_body(op.args)
    labels = op.args.get("labels") if isinstance(op.args, dict) else None
    return ProposalSnapshotRecord(
        proposal_id=proposal_id,
        block_height=block_height,
        ts=block_timestamp,
        editor_id=editor_id,
        labels=labels,
        name=body.get("name"),
        category=body.get("category"),
        summary=body.get("summary"),
        description=body.get("description"),
        linked_proposals=_join_linked_proposals(body.get("linked_proposals")),
        requested_sponsorship_usd_amount=body.get("requested_sponsorship_usd_amount"),
        requested_sponsorship_paid_in_currency=body.get("requested_sponsorship_paid_in_currency"),
        requested_sponsor=body.get("requested_sponsor"),
        receiver_account=body.get("receiver_account"),
        supervisor=body.get("supervisor"),
        timeline=_timeline_text(body.get("timeline")),
    )


# ---------------------------------------------------------------------------
# Dispatch context
# ---------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class DispatchContext:
    """
    Read-only state shared by every dispatch task of one block.

    `authors` is built before the first task starts and never mutated, so
    tasks read it without locking.
    """

    sink: IRecordSink
    authors: AuthorProposalMap
    block_height: int
    block_timestamp: int


async def _persist(write: Callable[[R], Awaitable[None]], record: R) -> PersistenceError | None:
    """Run one sink write, turning a raised PersistenceError into a result."""
    try:
        await write(record)
    except PersistenceError as e:
        log.error("record_write_failed", table=record.table, error=str(e), record=_record_key(record))
        return e
    log.info("record_written", table=record.table, record=_record_key(record))
    return None


def _record_key(record: Record) -> dict[str, Any]:
    match record:
        case DumpRecord():
            return {"receipt_id": record.receipt_id, "proposal_id": record.proposal_id}
        case ProposalRecord():
            return {"id": record.id}
        case ProposalSnapshotRecord():
            return {"proposal_id": record.proposal_id, "block_height": record.block_height}
    raise TypeError(f"unsupported record type: {type(record).__name__}")


# ---------------------------------------------------------------------------
# Per-operation pipeline
# ---------------------------------------------------------------------------


async def dispatch_operation(op: ExtractedOperation, ctx: DispatchContext) -> DispatchOutcome:
    """
    Write the records derived from one operation.

    Steps, each short-circuiting on a failed write:
      dump (always) -> stop if uncorrelated -> proposal (callback only)
      -> snapshot (edit methods and callback).

    The author is the first correlation of the block, not `op.caller`:
    the storage diff cannot be attributed to a receipt, so with more than
    one correlation per block the join is best-effort.
    """
    author = ctx.authors.first_author()
    proposal_id = ctx.authors.get(author) if author is not None else None
    written: list[Record] = []

    def outcome(status: DispatchStatus, err: PersistenceError | None = None) -> DispatchOutcome:
        return DispatchOutcome(
            receipt_id=op.receipt_id,
            method_name=op.method_name,
            status=status,
            written=tuple(written),
            error=None if err is None else str(err),
        )

    log.info(
        "indexing_operation",
        method_name=op.method_name,
        author=author,
        caller=op.caller,
        block_height=ctx.block_height,
    )

    dump = build_dump_record(
        op,
        author=author,
        proposal_id=proposal_id,
        block_height=ctx.block_height,
        block_timestamp=ctx.block_timestamp,
    )
    if (err := await _persist(ctx.sink.create_dump, dump)) is not None:
        return outcome(DispatchStatus.DUMP_FAILED, err)
    written.append(dump)

    # No author-index diff: the receipt most likely failed on chain.
    if proposal_id is None:
        log.warning(
            "no_state_change_for_receipt",
            method_name=op.method_name,
            receipt_id=op.receipt_id,
            block_height=ctx.block_height,
            hint="probably a failed receipt, please check",
        )
        return outcome(DispatchStatus.UNCORRELATED)

    if op.method_name == SET_BLOCK_HEIGHT_CALLBACK:
        proposal = ProposalRecord(id=proposal_id, author_id=author)
        if (err := await _persist(ctx.sink.create_proposal, proposal)) is not None:
            return outcome(DispatchStatus.PROPOSAL_FAILED, err)
        written.append(proposal)

    if op.method_name not in SNAPSHOT_METHODS:
        return outcome(DispatchStatus.DUMPED)

    if not proposal_body(op.args):
        log.warning("proposal_body_missing", method_name=op.method_name, receipt_id=op.receipt_id)
    snapshot = build_proposal_snapshot(
        op,
        proposal_id=proposal_id,
        editor_id=author,
        block_height=ctx.block_height,
        block_timestamp=ctx.block_timestamp,
    )
    if (err := await _persist(ctx.sink.create_proposal_snapshot, snapshot)) is not None:
        return outcome(DispatchStatus.SNAPSHOT_FAILED, err)
    written.append(snapshot)
    return outcome(DispatchStatus.SNAPSHOT_RECORDED)


# ---------------------------------------------------------------------------
# Domain service – IndexBlockService
# ---------------------------------------------------------------------------


class IndexBlockService:
    """
    Domain service indexing one block at a time into a record sink.

    Extraction and correlation run once per block, synchronously; the
    extracted operations are then dispatched concurrently and joined.
    Nothing is carried over from one `index` call to the next.
    """

    def __init__(self, sink: IRecordSink, config: IndexerConfig | None = None) -> None:
        self._sink = sink
        self._config = config or IndexerConfig()

    async def index(self, block: Block) -> BlockStats:
        """
        Index `block` and return its counters.

        Raises
        ------
        DecodeError
            If a qualifying call or author-index diff cannot be decoded; no
            record of the block is written in that case.
        """
        stats = BlockStats(block_height=block.height)

        # 1) Extract qualifying calls
        ops = extract_operations(block, contract=self._config.contract)
        stats.operations = len(ops)
        if not ops:
            return stats

        # 2) Correlate authors with proposal ids (read-only from here on)
        authors = build_author_proposal_map(
            block,
            contract=self._config.contract,
            key_prefix=self._config.author_index_prefix,
        )
        stats.correlations = len(authors)
        log.info(
            "operations_found",
            block_height=block.height,
            operations=[op.method_name for op in ops],
            correlations=dict(authors),
        )
        if len(authors) > 1:
            log.warning(
                "ambiguous_correlation",
                block_height=block.height,
                authors=list(authors),
                chosen=authors.first_author(),
            )

        ctx = DispatchContext(
            sink=self._sink,
            authors=authors,
            block_height=block.height,
            block_timestamp=block.timestamp_nanosec,
        )

        # 3) Fan out one dispatch per operation and join them all
        sem = asyncio.Semaphore(self._config.concurrency)

        async def bounded(op: ExtractedOperation) -> DispatchOutcome:
            async with sem:
                return await dispatch_operation(op, ctx)

        tasks = [asyncio.create_task(bounded(op)) for op in ops]
        # Every task is joined before an unexpected error surfaces.
        results = await asyncio.gather(*tasks, return_exceptions=True)

        for result in results:
            if isinstance(result, BaseException):
                raise result
            stats.add(result)
        return stats
