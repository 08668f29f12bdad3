"""Local Parquet sink for offline replays.

Layout:
    <out_root>/
      dumps/shard_00000.parquet
      proposals/shard_00000.parquet
      proposal_snapshots/shard_00000.parquet

Each table is buffered in memory and flushed into a new shard every
`rows_per_shard` rows (and once more on `close`). Shards are written
atomically (tmp + replace); a new run continues after the last shard index.
"""

from __future__ import annotations

import asyncio
import glob
import os
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq

from devhind.core.errors import PersistenceError
from devhind.core.interfaces import IRecordSink
from devhind.core.models import DumpRecord, ProposalRecord, ProposalSnapshotRecord, Record
from devhind.observability.logging import get_logger

log = get_logger(__name__)

# === Table schemas (Arrow) ===

TABLE_SCHEMAS: dict[str, pa.Schema] = {
    DumpRecord.table: pa.schema(
        [
            ("receipt_id", pa.string()),
            ("method_name", pa.string()),
            ("block_height", pa.uint64()),
            ("block_timestamp", pa.uint64()),
            ("args", pa.string()),
            ("author", pa.string()),
            ("proposal_id", pa.uint64()),
        ]
    ),
    ProposalRecord.table: pa.schema(
        [
            ("id", pa.uint64()),
            ("author_id", pa.string()),
        ]
    ),
    ProposalSnapshotRecord.table: pa.schema(
        [
            ("proposal_id", pa.uint64()),
            ("block_height", pa.uint64()),
            ("ts", pa.uint64()),
            ("editor_id", pa.string()),
            ("labels", pa.list_(pa.string())),
            ("name", pa.string()),
            ("category", pa.string()),
            ("summary", pa.string()),
            ("description", pa.string()),
            ("linked_proposals", pa.string()),
            # text: call args carry a JSON number or a numeric string
            ("requested_sponsorship_usd_amount", pa.string()),
            ("requested_sponsorship_paid_in_currency", pa.string()),
            ("requested_sponsor", pa.string()),
            ("receiver_account", pa.string()),
            ("supervisor", pa.string()),
            ("timeline", pa.string()),
        ]
    ),
}


def _coerce_row(record: Record) -> dict[str, Any]:
    """Shape a record into Arrow-safe values for its table schema."""
    row = record.to_dict()
    if isinstance(record, ProposalSnapshotRecord):
        amount = row["requested_sponsorship_usd_amount"]
        row["requested_sponsorship_usd_amount"] = None if amount is None else str(amount)
        labels = row["labels"]
        if labels is not None:
            row["labels"] = [str(v) for v in labels] if isinstance(labels, list) else [str(labels)]
    return row


class TableShardsDir:
    """Shard directory of one table: <root>/<table>/shard_*.parquet."""

    def __init__(self, root: Path, table: str) -> None:
        self.shards_dir = root / table
        self.shards_dir.mkdir(exist_ok=True, parents=True)

    def shards_files_pattern(self) -> str:
        return (self.shards_dir / "shard_*.parquet").as_posix()

    def list_shards(self) -> list[str]:
        return sorted(glob.glob(self.shards_files_pattern()))

    def shard_path(self, idx: int) -> Path:
        return self.shards_dir / f"shard_{idx:05d}.parquet"


class TableShardWriter:
    """Row buffer for one table, flushed into numbered Parquet shards."""

    def __init__(
        self,
        shards_dir: TableShardsDir,
        schema: pa.Schema,
        *,
        rows_per_shard: int = 50_000,
        codec: str = "zstd",
    ) -> None:
        self.shards_dir = shards_dir
        self.schema = schema
        self.rows_per_shard = rows_per_shard
        self.codec = codec
        self.rows: list[dict[str, Any]] = []
        self.shard_idx = self._init_from_existing()

    def _init_from_existing(self) -> int:
        """Continue after the last existing shard, never overwriting it."""
        existing = self.shards_dir.list_shards()
        if not existing:
            return 0
        last_idx = int(os.path.basename(existing[-1]).split("_")[1].split(".")[0])
        return last_idx + 1

    def _atomic_write(self, rows: list[dict[str, Any]]) -> Path:
        """Write Parquet atomically (tmp + replace)."""
        table = pa.Table.from_pylist(rows, schema=self.schema)
        out_path = self.shards_dir.shard_path(self.shard_idx)
        tmp = out_path.with_suffix(".tmp")
        pq.write_table(table, tmp, compression=self.codec)
        os.replace(tmp, out_path)
        self.shard_idx += 1
        log.info("shard_written", path=str(out_path), rows=len(table))
        return out_path

    def add(self, row: dict[str, Any]) -> list[Path]:
        """Buffer one row; write full shards. Returns the shard paths written.

        Rows leave the buffer only once their shard is on disk. If the flush
        fails, `row` is taken back out and the error propagates; earlier
        rows stay buffered for the next flush.
        """
        self.rows.append(row)
        written: list[Path] = []
        try:
            while len(self.rows) >= self.rows_per_shard:
                written.append(self._atomic_write(self.rows[: self.rows_per_shard]))
                del self.rows[: self.rows_per_shard]
        except (pa.ArrowException, OSError):
            if self.rows and self.rows[-1] is row:
                self.rows.pop()
            raise
        return written

    def close(self) -> Path | None:
        """Flush remaining rows as a final (possibly short) shard.

        On failure the rows stay buffered, so `close` can be retried.
        """
        if not self.rows:
            return None
        path = self._atomic_write(self.rows)
        self.rows = []
        return path


class ParquetRecordSink(IRecordSink):
    """
    Record sink writing each record kind into its own Parquet shard series.

    Writes are serialized by an asyncio lock; shard flushes run in a worker
    thread so concurrent dispatch tasks are not blocked on disk I/O.
    """

    def __init__(self, *, root: Path, rows_per_shard: int = 50_000, codec: str = "zstd") -> None:
        self.root = root
        self._lock = asyncio.Lock()
        self._writers: dict[str, TableShardWriter] = {
            table: TableShardWriter(
                TableShardsDir(root, table),
                schema,
                rows_per_shard=rows_per_shard,
                codec=codec,
            )
            for table, schema in TABLE_SCHEMAS.items()
        }

    async def _append(self, record: Record) -> None:
        writer = self._writers[record.table]
        async with self._lock:
            try:
                await asyncio.to_thread(writer.add, _coerce_row(record))
            except (pa.ArrowException, OSError) as e:
                raise PersistenceError(f"failed to write {record.table} shard: {e}", table=record.table) from e

    async def create_dump(self, record: DumpRecord) -> None:
        await self._append(record)

    async def create_proposal(self, record: ProposalRecord) -> None:
        await self._append(record)

    async def create_proposal_snapshot(self, record: ProposalSnapshotRecord) -> None:
        await self._append(record)

    async def aclose(self) -> list[Path]:
        """Flush every table; return the shard paths written."""
        written: list[Path] = []
        async with self._lock:
            for writer in self._writers.values():
                last = await asyncio.to_thread(writer.close)
                if last:
                    written.append(last)
        return written
