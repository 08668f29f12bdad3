from __future__ import annotations

import asyncio
import os
from pathlib import Path

from devhind.core.interfaces import IManifestRepository
from devhind.core.models import BlockRecord


class LiveManifest(IManifestRepository):
    """Append-only JSONL journal of per-block indexing status.

    One run writes one file; a block shows up as `started` followed by
    `done` or `failed`. Lines are fsync'ed so a crash mid-run still leaves
    every finished block on disk for the next run's coverage scan.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.touch(exist_ok=True)
        self._lock = asyncio.Lock()

    async def append(self, rec: BlockRecord) -> None:
        """Journal one block status line; appends never interleave."""
        async with self._lock:
            await asyncio.to_thread(self._fsync_append, rec.to_json_line())

    def _fsync_append(self, line: str) -> None:
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(line)
            fh.flush()
            os.fsync(fh.fileno())
