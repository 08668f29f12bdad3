"""Replay orchestrator: read blocks → index → journal.

This module provides two layers:

1) `index_blocks(...)`:
   - Pure application-layer loop.
   - Depends ONLY on interfaces (IBlockSource, IRecordSink,
     IManifestRepository).
   - Does NOT instantiate clients or sinks, does NOT manage lifecycle.

2) `replay(...)`:
   - Wires concrete implementations (FileBlockSource, GraphQL or Parquet
     sink, LiveManifest) for CLI / script usage.
   - Calls `index_blocks(...)` under the hood and closes what it opened.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from devhind.clients.graphql import GraphQLClient
from devhind.clients.lake import FileBlockSource
from devhind.core.config import IndexerConfig, RunnerConfig
from devhind.core.errors import BlockParseError, DecodeError
from devhind.core.interfaces import IBlockSource, IManifestRepository, IRecordSink
from devhind.core.models import BlockRecord, BlockStats
from devhind.core.use_cases.index_block import IndexBlockService
from devhind.observability.logging import get_logger
from devhind.orchestration.utils import is_covered, load_done_coverage
from devhind.storage.graphql_sink import GraphQLRecordSink
from devhind.storage.manifest import LiveManifest
from devhind.storage.shards import ParquetRecordSink

log = get_logger(__name__)


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class RunStats:
    """Aggregated counters over a replay."""

    blocks_indexed: int = 0
    blocks_skipped: int = 0
    blocks_failed: int = 0
    operations: int = 0
    dumps: int = 0
    proposals: int = 0
    snapshots: int = 0
    uncorrelated: int = 0
    write_failures: int = 0

    def add(self, stats: BlockStats) -> None:
        self.blocks_indexed += 1
        self.operations += stats.operations
        self.dumps += stats.dumps
        self.proposals += stats.proposals
        self.snapshots += stats.snapshots
        self.uncorrelated += stats.uncorrelated
        self.write_failures += stats.failures


@dataclass(kw_only=True)
class ReplayOutput:
    """High-level output of a replay."""

    stats: RunStats
    manifest_path: Path
    shards_written: list[Path] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Block record helpers
# ---------------------------------------------------------------------------


def _started_record(height: int) -> BlockRecord:
    return BlockRecord(
        block_height=height,
        status="started",
        error=None,
        operations=0,
        dumps=0,
        proposals=0,
        snapshots=0,
        failures=0,
        updated_at=time.time(),
    )


def _done_record(stats: BlockStats) -> BlockRecord:
    return BlockRecord(
        block_height=stats.block_height,
        status="done",
        error=None,
        operations=stats.operations,
        dumps=stats.dumps,
        proposals=stats.proposals,
        snapshots=stats.snapshots,
        failures=stats.failures,
        updated_at=time.time(),
    )


def _failed_record(height: int | None, error: str, *, source: str | None = None) -> BlockRecord:
    return BlockRecord(
        block_height=height,
        status="failed",
        error=error,
        operations=0,
        dumps=0,
        proposals=0,
        snapshots=0,
        failures=0,
        updated_at=time.time(),
        source=source,
    )


# ---------------------------------------------------------------------------
# 1) Pure application loop
# ---------------------------------------------------------------------------


async def index_blocks(
    *,
    source: IBlockSource,
    sink: IRecordSink,
    manifest: IManifestRepository,
    config: IndexerConfig | None = None,
    covered: list[tuple[int, int]] | None = None,
    skip_failed_blocks: bool = False,
    on_block: Callable[[int | None], None] | None = None,
) -> RunStats:
    """Index every block of `source` in order.

    Heights inside `covered` are skipped. A DecodeError, including an input
    the source could not parse, marks the block failed in the manifest and
    is re-raised unless `skip_failed_blocks`. `on_block` gets the height of
    each handled block, or None for an unparseable input.
    """
    service = IndexBlockService(sink, config)
    stats = RunStats()
    covered = covered or []

    async for item in source.blocks():
        if isinstance(item, BlockParseError):
            stats.blocks_failed += 1
            await manifest.append(_failed_record(None, str(item), source=item.source))
            log.error("block_unparseable", source=item.source, error=str(item))
            if not skip_failed_blocks:
                raise item
            height = None
        elif is_covered(item.height, covered):
            stats.blocks_skipped += 1
            height = item.height
        else:
            height = item.height
            await manifest.append(_started_record(height))
            try:
                block_stats = await service.index(item)
            except DecodeError as e:
                stats.blocks_failed += 1
                await manifest.append(_failed_record(height, str(e)))
                log.error("block_failed", block_height=height, error=str(e))
                if not skip_failed_blocks:
                    raise
            else:
                stats.add(block_stats)
                await manifest.append(_done_record(block_stats))
                if block_stats.operations:
                    log.info("block_indexed", block_height=height, operations=block_stats.operations)
        if on_block is not None:
            on_block(height)

    return stats


# ---------------------------------------------------------------------------
# 2) Convenience wrapper (concrete wiring)
# ---------------------------------------------------------------------------


def _run_basename() -> str:
    now = time.time_ns()
    stamp = time.strftime("%Y%m%d_%H%M%S", time.gmtime(now // 1_000_000_000))
    return f"run_{stamp}_{now % 1_000_000_000:09d}.jsonl"


async def replay(
    config: RunnerConfig,
    *,
    on_block: Callable[[int | None], None] | None = None,
) -> ReplayOutput:
    """Replay block files into GraphQL (when configured) or Parquet shards."""
    manifests_dir = config.out_root / "manifests"
    manifests_dir.mkdir(exist_ok=True, parents=True)
    run_name = _run_basename()
    manifest_path = manifests_dir / run_name

    covered = load_done_coverage(manifests_dir, exclude_basename=run_name)
    manifest = LiveManifest(manifest_path)
    source = FileBlockSource(config.blocks_path)

    client: GraphQLClient | None = None
    parquet: ParquetRecordSink | None = None
    sink: IRecordSink
    if config.graphql is not None:
        client = GraphQLClient.from_config(config.graphql)
        sink = GraphQLRecordSink(client, schema_prefix=config.graphql.schema_prefix)
    else:
        parquet = ParquetRecordSink(root=config.out_root, rows_per_shard=config.rows_per_shard)
        sink = parquet

    output = ReplayOutput(stats=RunStats(), manifest_path=manifest_path)
    try:
        output.stats = await index_blocks(
            source=source,
            sink=sink,
            manifest=manifest,
            config=config.indexer,
            covered=covered,
            skip_failed_blocks=config.skip_failed_blocks,
            on_block=on_block,
        )
    finally:
        if parquet is not None:
            output.shards_written = await parquet.aclose()
        if client is not None:
            await client.aclose()
    return output
