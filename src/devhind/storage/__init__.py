"""Record sinks, block manifest and local shard queries.

This package provides:
- GraphQLRecordSink: insert mutations through a GraphQL gateway
- ParquetRecordSink: per-table Parquet shards for offline replays
- LiveManifest: append-only block status journal
"""

from devhind.storage.graphql_sink import GraphQLRecordSink
from devhind.storage.manifest import LiveManifest
from devhind.storage.shards import ParquetRecordSink

__all__ = [
    "GraphQLRecordSink",
    "LiveManifest",
    "ParquetRecordSink",
]
