from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from devhind.constants import (
    AUTHOR_INDEX_KEY_PREFIX,
    DEFAULT_SCHEMA_PREFIX,
    DEVHUB_CONTRACT,
)


@dataclass(frozen=True)
class IndexerConfig:
    """Configuration for the per-block indexing use case."""

    contract: str = DEVHUB_CONTRACT
    author_index_prefix: str = AUTHOR_INDEX_KEY_PREFIX  # hex prefix of author-index keys
    concurrency: int = 16  # max in-flight operation dispatches per block


@dataclass(frozen=True)
class GraphQLConfig:
    """Configuration for the GraphQL persistence endpoint."""

    url: str
    schema_prefix: str = DEFAULT_SCHEMA_PREFIX
    role: str | None = None  # sent as X-Hasura-Role when set
    timeout_s: int = 20
    max_connections: int = 16


@dataclass(frozen=True)
class RunnerConfig:
    """Configuration for replaying block files through the indexer (CLI)."""

    blocks_path: Path
    out_root: Path = Path("./data")
    indexer: IndexerConfig = field(default_factory=IndexerConfig)
    graphql: GraphQLConfig | None = None  # None -> write Parquet shards under out_root
    rows_per_shard: int = 50_000
    skip_failed_blocks: bool = False
    log_level: str = "INFO"
