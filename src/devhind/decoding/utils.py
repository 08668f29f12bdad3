"""Decoding utilities: bounds-checked little-endian reads over raw bytes."""

from __future__ import annotations

from devhind.core.errors import DecodeError


def slice_at(buf: bytes, offset: int, size: int, *, what: str = "buffer") -> bytes:
    """Return buf[offset:offset + size], failing if it runs past the end."""
    end = offset + size
    if offset < 0 or size < 0 or end > len(buf):
        raise DecodeError(f"{what}: read of {size} bytes at offset {offset} exceeds length {len(buf)}")
    return buf[offset:end]


def u32_le(buf: bytes, offset: int, *, what: str = "buffer") -> int:
    """Read an unsigned 32-bit little-endian integer."""
    return int.from_bytes(slice_at(buf, offset, 4, what=what), "little", signed=False)


def u64_le(buf: bytes, offset: int, *, what: str = "buffer") -> int:
    """Read an unsigned 64-bit little-endian integer."""
    return int.from_bytes(slice_at(buf, offset, 8, what=what), "little", signed=False)


def utf8_at(buf: bytes, offset: int, size: int, *, what: str = "buffer") -> str:
    """Read `size` bytes at `offset` as UTF-8 text."""
    raw = slice_at(buf, offset, size, what=what)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"{what}: invalid UTF-8 at offset {offset}: {e}") from e
