"""
Incremental synchronization and reversal engine.

This package provides:
- Size probing of the remote object and the local mirror
- Inclusive ranged downloads of only the new bytes
- Append-only canonical mirror writes
- Byte-safe chunk reversal and seam-correct prepending
- A single-flight orchestrator tying the steps into one cycle
"""

from logmirror.sync.appender import MirrorAppender
from logmirror.sync.fetcher import RangeFetcher
from logmirror.sync.merger import ReversedMerger, merge_reversed
from logmirror.sync.orchestrator import (
    CycleOutcome,
    CycleResult,
    SyncOrchestrator,
    SyncPhase,
    SyncState,
)
from logmirror.sync.pages import Page, read_page
from logmirror.sync.probe import SizeProbe
from logmirror.sync.reverser import reverse_chunk

__all__ = [
    "CycleOutcome",
    "CycleResult",
    "MirrorAppender",
    "Page",
    "RangeFetcher",
    "ReversedMerger",
    "SizeProbe",
    "SyncOrchestrator",
    "SyncPhase",
    "SyncState",
    "merge_reversed",
    "read_page",
    "reverse_chunk",
]
