"""Orchestration for replaying blocks with resumability.

This package provides:
- Block loop (index_blocks) and its concrete wiring (replay)
- Coverage utilities over previous manifests
"""

from devhind.orchestration.orchestrator import ReplayOutput, RunStats, index_blocks, replay
from devhind.orchestration.utils import is_covered, load_done_coverage, merge_intervals

__all__ = [
    "ReplayOutput",
    "RunStats",
    "index_blocks",
    "replay",
    "is_covered",
    "load_done_coverage",
    "merge_intervals",
]
