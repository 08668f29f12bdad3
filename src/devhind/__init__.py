from __future__ import annotations

from .core.errors import DecodeError, PersistenceError
from .core.models import (
    AuthorProposalMap,
    Block,
    DumpRecord,
    ExtractedOperation,
    ProposalRecord,
    ProposalSnapshotRecord,
)
from .core.use_cases.index_block import IndexBlockService
from .decoding.codec import base64_to_hex, decode_author_proposal_entry, decode_base64_json
from .decoding.operations import extract_operations
from .decoding.state_changes import build_author_proposal_map

__all__ = [
    "DecodeError",
    "PersistenceError",
    "AuthorProposalMap",
    "Block",
    "DumpRecord",
    "ExtractedOperation",
    "ProposalRecord",
    "ProposalSnapshotRecord",
    "IndexBlockService",
    "base64_to_hex",
    "decode_author_proposal_entry",
    "decode_base64_json",
    "extract_operations",
    "build_author_proposal_map",
]
