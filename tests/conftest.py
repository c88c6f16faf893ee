"""
Shared pytest fixtures for logmirror tests.
"""

import threading
from typing import Callable, List, Optional, Tuple

import pytest

from logmirror.remote.base import RemoteObjectRef, RemoteStore
from logmirror.sync.orchestrator import SyncOrchestrator
from logmirror.utils.config import reset_config


class InMemoryStore(RemoteStore):
    """
    Remote store holding the log in memory.

    Attributes:
        data: Current remote content
        size_calls: Number of size() calls
        range_calls: (start, end) of every read_range() call
        size_error: Raised from size() when set
        range_error: Raised from read_range() when set
        range_override: Returned from read_range() instead of the real slice when set
        read_gate: When set, read_range() blocks until the event is set
        read_started: Set as soon as read_range() is entered
    """

    def __init__(self, data: bytes = b""):
        self.data = bytearray(data)
        self.size_calls = 0
        self.range_calls: List[Tuple[int, int]] = []
        self.size_error: Optional[Exception] = None
        self.range_error: Optional[Exception] = None
        self.range_override: Optional[bytes] = None
        self.read_gate: Optional[threading.Event] = None
        self.read_started = threading.Event()

    def append(self, more: bytes) -> None:
        self.data.extend(more)

    def size(self, ref: RemoteObjectRef) -> int:
        self.size_calls += 1
        if self.size_error is not None:
            raise self.size_error
        return len(self.data)

    def read_range(self, ref: RemoteObjectRef, start: int, end: int) -> bytes:
        self.range_calls.append((start, end))
        self.read_started.set()
        if self.read_gate is not None:
            self.read_gate.wait(5.0)
        if self.range_error is not None:
            raise self.range_error
        if self.range_override is not None:
            return self.range_override
        return bytes(self.data[start:end + 1])


@pytest.fixture(autouse=True)
def clean_config():
    """Drop the global config between tests."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def memory_store():
    """Empty in-memory remote store."""
    return InMemoryStore()


@pytest.fixture
def remote_ref():
    return RemoteObjectRef(object_id="remote-log", name="live_log.txt")


@pytest.fixture
def mirror_paths(tmp_path):
    """(canonical mirror path, reversed file path) inside a fresh data dir."""
    data_dir = tmp_path / "data"
    return data_dir / "live_log.txt", data_dir / "live_log_reversed.txt"


@pytest.fixture
def make_orchestrator(memory_store, remote_ref, mirror_paths) -> Callable[..., SyncOrchestrator]:
    """Factory building an orchestrator over the in-memory store."""
    local_path, reversed_path = mirror_paths

    def factory(store: Optional[RemoteStore] = None) -> SyncOrchestrator:
        return SyncOrchestrator(
            store=store or memory_store,
            ref=remote_ref,
            local_log_file=local_path,
            reversed_log_file=reversed_path,
        )

    return factory
