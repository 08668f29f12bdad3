"""
queries.py
----------

DuckDB reads over the local Parquet shards written by `ParquetRecordSink`.

Snapshots of one proposal are ordered by (block_height, ts): dispatch within
a block is concurrent, so shard row order carries no meaning.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path

import duckdb
import pandas as pd

from devhind.core.models import ProposalSnapshotRecord
from devhind.storage.shards import TableShardsDir

SNAPSHOT_HISTORY_QUERY = """
SELECT
  proposal_id,
  block_height,
  ts,
  editor_id,
  name,
  category,
  linked_proposals,
  requested_sponsorship_usd_amount,
  requested_sponsorship_paid_in_currency,
  timeline
FROM read_parquet(?, union_by_name=true)
WHERE proposal_id = ?
ORDER BY block_height, ts;
"""


@contextmanager
def get_connection(threads: int = 4):
    """Context manager for an in-memory DuckDB connection."""
    con = duckdb.connect()
    try:
        con.execute(f"PRAGMA threads={threads}")
        yield con
    finally:
        con.close()


def snapshot_history(out_root: Path, proposal_id: int) -> pd.DataFrame:
    """Return every snapshot of `proposal_id`, oldest first.

    Args:
        out_root: Root directory of a ParquetRecordSink.
        proposal_id: Proposal to look up.

    Returns:
        DataFrame with one row per snapshot (empty when no shard exists).
    """
    shards = TableShardsDir(out_root, ProposalSnapshotRecord.table)
    if not shards.list_shards():
        return pd.DataFrame()
    with get_connection() as con:
        return con.execute(SNAPSHOT_HISTORY_QUERY, [shards.shards_files_pattern(), proposal_id]).df()
