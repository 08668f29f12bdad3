"""Decoding of call arguments and storage diffs.

This package provides:
- Binary codec (base64 JSON arguments, Borsh author-index records)
- Operation extraction from a block's actions
- Author -> proposal id correlation from a block's state changes
"""

from devhind.decoding.codec import (
    base64_to_bytes,
    base64_to_hex,
    decode_author_proposal_entry,
    decode_base64_json,
)
from devhind.decoding.operations import extract_operations, is_indexed_call
from devhind.decoding.state_changes import build_author_proposal_map, iter_author_index_changes

__all__ = [
    "base64_to_bytes",
    "base64_to_hex",
    "decode_author_proposal_entry",
    "decode_base64_json",
    "extract_operations",
    "is_indexed_call",
    "build_author_proposal_map",
    "iter_author_index_changes",
]
