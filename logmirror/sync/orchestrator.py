"""
Sync cycle orchestration.

Composes size probing, ranged fetch, canonical append, chunk reversal and
reversed-file merge into one single-flight cycle.

State transitions:
IDLE → SYNCING → IDLE   (success: watermark advanced)
IDLE → SYNCING → IDLE   (failure: nothing advanced)
"""

import os
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

from logmirror.errors import (
    CycleAlreadyInProgress,
    MirrorError,
    RemoteShrank,
    StorageWriteFailed,
)
from logmirror.remote.base import RemoteObjectRef, RemoteStore
from logmirror.sync.appender import MirrorAppender
from logmirror.sync.fetcher import RangeFetcher
from logmirror.sync.merger import ReversedMerger
from logmirror.sync.pages import Page, read_lines, read_page
from logmirror.sync.probe import SizeProbe
from logmirror.sync.reverser import reverse_chunk
from logmirror.utils.logging import cycle_context, get_logger

logger = get_logger(__name__)


class SyncPhase(Enum):
    """Orchestrator lifecycle phase."""

    IDLE = "IDLE"
    SYNCING = "SYNCING"


class CycleOutcome(Enum):
    """What a completed cycle did."""

    UPDATED = "UPDATED"  # New bytes mirrored
    UNCHANGED = "UNCHANGED"  # Remote and local already equal
    REMOTE_SHRANK = "REMOTE_SHRANK"  # Remote smaller than local, nothing done


@dataclass
class CycleResult:
    """
    Outcome of one sync cycle.

    Attributes:
        changed: Whether either file was modified
        bytes_moved: Bytes downloaded and appended
        outcome: Cycle outcome kind
        remote_size: Remote size observed at cycle start
        local_size: Canonical mirror size at cycle start
        duration_ms: Wall time of the cycle
        anomaly: Surfaced non-fatal anomaly, if any
    """
    changed: bool
    bytes_moved: int
    outcome: CycleOutcome
    remote_size: int
    local_size: int
    duration_ms: int = 0
    anomaly: Optional[MirrorError] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "changed": self.changed,
            "bytesMoved": self.bytes_moved,
            "outcome": self.outcome.value,
            "remoteSize": self.remote_size,
            "localSize": self.local_size,
            "durationMs": self.duration_ms,
            "anomaly": self.anomaly.to_dict() if self.anomaly else None,
        }


@dataclass
class SyncState:
    """
    Per-object sync state held by one orchestrator.

    Attributes:
        local_byte_length: Watermark, re-derived from the canonical file each cycle
        sync_in_progress: Whether a cycle currently holds the guard
        last_sync_timestamp: Completion time of the last successful cycle
        last_result: Result of the last successful cycle
        last_error: Description of the last failed cycle
    """
    local_byte_length: int = 0
    sync_in_progress: bool = False
    last_sync_timestamp: Optional[datetime] = None
    last_result: Optional[CycleResult] = None
    last_error: Optional[Dict[str, Any]] = None

    @property
    def phase(self) -> SyncPhase:
        return SyncPhase.SYNCING if self.sync_in_progress else SyncPhase.IDLE


class SyncOrchestrator:
    """
    Single entry point for mirroring one remote log.

    At most one cycle runs at a time. A caller that arrives while a cycle
    is active gets CycleAlreadyInProgress immediately instead of waiting.

    Attributes:
        local_log_file: Canonical mirror path (oldest first)
        reversed_log_file: Reversed file path (newest first)
    """

    def __init__(
        self,
        store: RemoteStore,
        ref: RemoteObjectRef,
        local_log_file: Union[str, Path],
        reversed_log_file: Union[str, Path],
        fsync: bool = False,
    ):
        """
        Initialize orchestrator.

        Args:
            store: Remote store to mirror from
            ref: Remote object to mirror
            local_log_file: Canonical mirror path
            reversed_log_file: Reversed file path
            fsync: Whether to fsync both files on every write
        """
        self.local_log_file = Path(local_log_file)
        self.reversed_log_file = Path(reversed_log_file)

        self._ref = ref
        self._probe = SizeProbe(store)
        self._fetcher = RangeFetcher(store)
        self._appender = MirrorAppender(fsync_on_append=fsync)
        self._merger = ReversedMerger(fsync_on_write=fsync)

        self._guard = threading.Lock()
        self._state = SyncState(
            local_byte_length=SizeProbe.local_size(self.local_log_file),
        )

        logger.info(
            "Initialized sync orchestrator",
            ref=ref.object_id,
            local_log_file=str(self.local_log_file),
            reversed_log_file=str(self.reversed_log_file),
            watermark=self._state.local_byte_length,
        )

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def ref(self) -> RemoteObjectRef:
        return self._ref

    def update_ref(self, ref: RemoteObjectRef) -> None:
        """
        Point the orchestrator at a re-resolved remote object.

        Args:
            ref: New remote object reference

        Raises:
            CycleAlreadyInProgress: If a cycle is running
        """
        with self._single_flight():
            if ref != self._ref:
                logger.info("Remote reference changed", old=self._ref.object_id, new=ref.object_id)
            self._ref = ref

    @contextmanager
    def _single_flight(self) -> Iterator[None]:
        """Hold the cycle guard for the duration of the block."""
        if not self._guard.acquire(blocking=False):
            raise CycleAlreadyInProgress(
                "Sync already in progress",
                ref=self._ref.object_id,
            )

        self._state.sync_in_progress = True
        try:
            yield
        finally:
            self._state.sync_in_progress = False
            self._guard.release()

    def run_cycle(self) -> CycleResult:
        """
        Run one sync cycle.

        Returns:
            Cycle result

        Raises:
            CycleAlreadyInProgress: If another cycle is running
            RemoteUnavailable: If the remote could not be queried or read
            EmptyDownload: If the remote returned no bytes for the new range
            StorageWriteFailed: If either local file could not be written
        """
        with self._single_flight(), cycle_context(ref=self._ref.object_id):
            start_time = time.monotonic()
            logger.info("Starting sync cycle")

            try:
                result = self._cycle()
            except Exception as e:
                duration_ms = int((time.monotonic() - start_time) * 1000)
                if isinstance(e, MirrorError):
                    self._state.last_error = e.to_dict()
                else:
                    self._state.last_error = {"error": type(e).__name__, "message": str(e)}
                logger.error(
                    "Sync cycle failed",
                    duration_ms=duration_ms,
                    error=self._state.last_error,
                )
                raise

            result.duration_ms = int((time.monotonic() - start_time) * 1000)
            self._state.last_result = result
            self._state.last_error = None
            self._state.last_sync_timestamp = datetime.now(timezone.utc)

            logger.info(
                "Sync cycle completed",
                outcome=result.outcome.value,
                bytes_moved=result.bytes_moved,
                watermark=self._state.local_byte_length,
                duration_ms=result.duration_ms,
            )
            return result

    def _cycle(self) -> CycleResult:
        ref = self._ref

        remote_size = self._probe.remote_size(ref)
        local_size = self._probe.local_size(self.local_log_file)
        self._state.local_byte_length = local_size

        logger.debug(
            "Size comparison",
            remote_size=remote_size,
            local_size=local_size,
            difference=remote_size - local_size,
        )

        if remote_size < local_size:
            anomaly = RemoteShrank(
                "Remote file is smaller than local mirror",
                ref=ref.object_id,
                remote_size=remote_size,
                local_size=local_size,
            )
            logger.warning("Remote shrank, skipping download", **anomaly.to_dict())
            return CycleResult(
                changed=False,
                bytes_moved=0,
                outcome=CycleOutcome.REMOTE_SHRANK,
                remote_size=remote_size,
                local_size=local_size,
                anomaly=anomaly,
            )

        if remote_size == local_size:
            logger.debug("No new data, files are in sync", size=local_size)
            return CycleResult(
                changed=False,
                bytes_moved=0,
                outcome=CycleOutcome.UNCHANGED,
                remote_size=remote_size,
                local_size=local_size,
            )

        chunk = self._fetcher.fetch_range(ref, local_size, remote_size - 1)

        # Everything that can fail without I/O happens before either write
        reversed_block, _ = reverse_chunk(chunk)
        reversed_content = self._merger.build(self.reversed_log_file, reversed_block)

        try:
            self._appender.append(self.local_log_file, chunk)
            if reversed_content is not None:
                self._merger.write(self.reversed_log_file, reversed_content)
        except StorageWriteFailed as e:
            self._rollback(local_size, e)
            raise

        self._state.local_byte_length = self._probe.local_size(self.local_log_file)

        return CycleResult(
            changed=True,
            bytes_moved=len(chunk),
            outcome=CycleOutcome.UPDATED,
            remote_size=remote_size,
            local_size=local_size,
        )

    def _rollback(self, watermark: int, cause: StorageWriteFailed) -> None:
        """Restore the canonical mirror to the cycle's starting watermark."""
        try:
            self._appender.truncate(self.local_log_file, watermark)
        except StorageWriteFailed as rollback_error:
            cause.details["rollback_error"] = str(rollback_error)
            logger.error(
                "Rollback failed, canonical mirror may be ahead of reversed file",
                path=str(self.local_log_file),
                watermark=watermark,
                error=str(rollback_error),
            )

    def remote_size(self) -> int:
        """Query the remote size outside of a cycle (diagnostics only)."""
        return self._probe.remote_size(self._ref)

    def read_page(self, page: int = 1, page_size: int = 100) -> Page:
        """
        Read one page of newest-first lines.

        Args:
            page: 1-indexed page number
            page_size: Lines per page

        Returns:
            Requested page
        """
        return read_page(self.reversed_log_file, page, page_size)

    def snapshot(self) -> Dict[str, Any]:
        """
        Get local-side statistics.

        Returns:
            Dictionary with file sizes, line count and sync state
        """
        try:
            reversed_size = os.stat(self.reversed_log_file).st_size
        except FileNotFoundError:
            reversed_size = 0

        last_sync = self._state.last_sync_timestamp
        return {
            "ref": str(self._ref),
            "localSize": SizeProbe.local_size(self.local_log_file),
            "reversedSize": reversed_size,
            "totalLines": len(read_lines(self.reversed_log_file)),
            "lastSync": last_sync.isoformat() if last_sync else None,
            "syncInProgress": self._state.sync_in_progress,
            "lastError": self._state.last_error,
        }
