"""Core data models, configurations, errors and interfaces.

This package provides:
- Data models (Block, ExtractedOperation, AuthorProposalMap, records)
- Configuration classes (IndexerConfig, GraphQLConfig, RunnerConfig)
- Error taxonomy (DecodeError, PersistenceError)
"""

from devhind.core.config import GraphQLConfig, IndexerConfig, RunnerConfig
from devhind.core.errors import BlockParseError, DecodeError, IndexerError, PersistenceError
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
)

__all__ = [
    "GraphQLConfig",
    "IndexerConfig",
    "RunnerConfig",
    "BlockParseError",
    "DecodeError",
    "IndexerError",
    "PersistenceError",
    "AuthorProposalMap",
    "Block",
    "BlockStats",
    "DispatchOutcome",
    "DispatchStatus",
    "DumpRecord",
    "ExtractedOperation",
    "ProposalRecord",
    "ProposalSnapshotRecord",
]
