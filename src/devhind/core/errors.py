"""Error taxonomy for block indexing.

- `DecodeError`: malformed payloads (base64 / UTF-8 / JSON) or binary reads
  past a buffer end. Aborts the block being indexed.
- `BlockParseError`: upstream block JSON does not have the expected shape.
- `PersistenceError`: a record write was rejected or failed in transport.
  Recovered per operation by the dispatcher, never retried.
"""

from __future__ import annotations


class IndexerError(Exception):
    """Base class for all indexer errors."""


class DecodeError(IndexerError, ValueError):
    """Raised when call arguments or state diffs cannot be decoded."""


class BlockParseError(DecodeError):
    """Raised when a block document fails validation at the parsing boundary."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class PersistenceError(IndexerError):
    """Raised by record sinks when a mutation is rejected or cannot be sent."""

    def __init__(self, message: str, *, table: str | None = None) -> None:
        super().__init__(message)
        self.table = table
