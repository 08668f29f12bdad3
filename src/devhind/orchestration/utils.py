"""Block-height coverage of earlier runs, for resumable replays.

A run journals every block it finishes as `done`; the next run folds those
heights into sorted, inclusive [first, last] ranges and skips any block
that falls inside one.
"""

from __future__ import annotations

import bisect
import json
from pathlib import Path

from devhind.observability.logging import get_logger

log = get_logger(__name__)


def merge_intervals(intervals: list[tuple[int, int]]) -> list[tuple[int, int]]:
    """Fold inclusive height ranges into the fewest sorted, disjoint ones.

    Ranges that overlap or touch (`(1, 2)` and `(3, 5)`) become one.
    """
    merged: list[tuple[int, int]] = []
    for first, last in sorted(intervals):
        if merged and first <= merged[-1][1] + 1:
            prev_first, prev_last = merged[-1]
            merged[-1] = (prev_first, max(prev_last, last))
        else:
            merged.append((first, last))
    return merged


def is_covered(height: int, covered: list[tuple[int, int]]) -> bool:
    """Return True if `height` falls in one of the merged `covered` ranges."""
    i = bisect.bisect_right(covered, (height, float("inf"))) - 1
    return i >= 0 and covered[i][0] <= height <= covered[i][1]


def load_done_coverage(manifests_dir: Path, exclude_basename: str | None = None) -> list[tuple[int, int]]:
    """Collect heights recorded as 'done' in every manifest of `manifests_dir`.

    Unreadable lines are skipped with a warning; the current run's manifest
    can be excluded by basename.
    """
    heights: list[tuple[int, int]] = []
    if not manifests_dir.is_dir():
        return []
    for path in sorted(manifests_dir.glob("*.jsonl")):
        if exclude_basename and path.name == exclude_basename:
            continue
        with path.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    rec = json.loads(line)
                except json.JSONDecodeError:
                    log.warning("manifest_line_unreadable", path=str(path), line=lineno)
                    continue
                if rec.get("status") == "done":
                    h = int(rec["block_height"])
                    heights.append((h, h))
    return merge_intervals(heights)
