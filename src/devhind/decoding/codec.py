"""Binary codec for call arguments and author-index state diffs.

Call arguments arrive as base64 of UTF-8 JSON. Author-index diffs are the
contract's Borsh-encoded storage records:

    key   = 0x0e | proposal_id: u64 LE | ...
    value = <5 bytes> | author_len: u32 LE | author: utf-8[author_len] | ...

The layout carries no version byte, so every offset is bounds-checked and a
mismatch surfaces as `DecodeError` instead of a silently wrong id.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from devhind.core.errors import DecodeError
from devhind.decoding.utils import u32_le, u64_le, utf8_at

PROPOSAL_ID_OFFSET = 1
AUTHOR_LEN_OFFSET = 5
AUTHOR_OFFSET = 9


def base64_to_bytes(value: str) -> bytes:
    """Decode standard base64 into raw bytes."""
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise DecodeError(f"invalid base64 payload: {e}") from e


def base64_to_hex(value: str) -> str:
    """Decode base64 and render the bytes as lowercase hex."""
    return base64_to_bytes(value).hex()


def decode_base64_json(value: str) -> Any:
    """Decode base64 -> UTF-8 text -> JSON value."""
    raw = base64_to_bytes(value)
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"arguments are not valid UTF-8: {e}") from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(f"arguments are not valid JSON: {e}") from e


def decode_author_proposal_entry(key: bytes, value: bytes) -> tuple[str, int]:
    """Recover (author, proposal_id) from one author-index key/value pair.

    The discriminator byte at key[0] is checked by the caller.
    """
    proposal_id = u64_le(key, PROPOSAL_ID_OFFSET, what="author-index key")
    author_len = u32_le(value, AUTHOR_LEN_OFFSET, what="author-index value")
    author = utf8_at(value, AUTHOR_OFFSET, author_len, what="author-index value")
    return author, proposal_id
