"""
Tests for the remote store adapters.
"""

import httpx
import pytest

from logmirror.errors import RemoteUnavailable
from logmirror.remote.base import RemoteObjectRef
from logmirror.remote.drive_store import DriveStore
from logmirror.remote.http_store import HttpRangeStore
from logmirror.remote.local_store import LocalFileStore
from logmirror.sync.orchestrator import CycleOutcome, SyncOrchestrator

LOG = b"line one\nline two\nline three\n"


def parse_range(header: str):
    start, end = header.removeprefix("bytes=").split("-")
    return int(start), int(end)


def http_handler(honor_range: bool = True):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path != "/log.txt":
            return httpx.Response(404)
        if request.method == "HEAD":
            return httpx.Response(200, headers={"Content-Length": str(len(LOG))})
        if "Range" in request.headers and honor_range:
            start, end = parse_range(request.headers["Range"])
            return httpx.Response(206, content=LOG[start:end + 1])
        return httpx.Response(200, content=LOG)

    return handler


class TestHttpRangeStore:
    """Test HttpRangeStore."""

    ref = RemoteObjectRef(object_id="https://logs.example/log.txt")

    def make_store(self, handler):
        return HttpRangeStore(client=httpx.Client(transport=httpx.MockTransport(handler)))

    def test_size(self):
        assert self.make_store(http_handler()).size(self.ref) == len(LOG)

    def test_read_range(self):
        store = self.make_store(http_handler())

        assert store.read_range(self.ref, 9, 17) == b"line two\n"

    def test_range_not_honored_is_sliced(self):
        """Test a full 200 body is cut down to the requested window."""
        store = self.make_store(http_handler(honor_range=False))

        assert store.read_range(self.ref, 0, 3) == b"line"

    def test_not_found_is_permanent(self):
        store = self.make_store(http_handler())
        missing = RemoteObjectRef(object_id="https://logs.example/missing.txt")

        with pytest.raises(RemoteUnavailable) as exc_info:
            store.size(missing)

        assert exc_info.value.permanent
        assert exc_info.value.details["status_code"] == 404

    def test_server_error_is_transient(self):
        store = self.make_store(lambda request: httpx.Response(503))

        with pytest.raises(RemoteUnavailable) as exc_info:
            store.read_range(self.ref, 0, 1)

        assert not exc_info.value.permanent

    def test_malformed_content_length(self):
        store = self.make_store(
            lambda request: httpx.Response(200, headers={"Content-Length": "lots"})
        )

        with pytest.raises(RemoteUnavailable):
            store.size(self.ref)

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(RemoteUnavailable):
            self.make_store(handler).size(self.ref)

    def test_bearer_token_sent(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, headers={"Content-Length": "0"})

        store = HttpRangeStore(
            token="secret",
            client=httpx.Client(transport=httpx.MockTransport(handler)),
        )
        store.size(self.ref)

        assert seen["auth"] == "Bearer secret"


def drive_handler(request: httpx.Request) -> httpx.Response:
    if request.headers.get("Authorization") != "Bearer drive-token":
        return httpx.Response(401, json={"error": {"message": "unauthorized"}})

    path = request.url.path
    if path == "/drive/v3/files":
        if "empty" in request.url.params["q"]:
            return httpx.Response(200, json={"files": []})
        return httpx.Response(
            200,
            json={"files": [{"id": "newest", "name": "run.txt", "modifiedTime": "2026-01-01T00:00:00Z"}]},
        )
    if path == "/drive/v3/files/file-1":
        if request.url.params.get("alt") == "media":
            start, end = parse_range(request.headers["Range"])
            return httpx.Response(206, content=LOG[start:end + 1])
        if request.url.params.get("fields") == "size":
            return httpx.Response(200, json={"size": str(len(LOG))})
    if path == "/drive/v3/files/no-size":
        return httpx.Response(200, json={})
    return httpx.Response(404, json={"error": {"message": "not found"}})


class TestDriveStore:
    """Test DriveStore."""

    ref = RemoteObjectRef(object_id="file-1")

    def make_store(self, **kwargs):
        kwargs.setdefault("token", "drive-token")
        return DriveStore(
            client=httpx.Client(transport=httpx.MockTransport(drive_handler)),
            **kwargs,
        )

    def test_requires_credentials(self):
        with pytest.raises(ValueError):
            DriveStore()

    def test_size(self):
        assert self.make_store().size(self.ref) == len(LOG)

    def test_missing_size_field(self):
        with pytest.raises(RemoteUnavailable):
            self.make_store().size(RemoteObjectRef(object_id="no-size"))

    def test_read_range(self):
        assert self.make_store().read_range(self.ref, 0, 7) == b"line one"

    def test_unauthorized_is_permanent(self):
        store = self.make_store(token="wrong")

        with pytest.raises(RemoteUnavailable) as exc_info:
            store.size(self.ref)

        assert exc_info.value.permanent

    def test_token_file_is_reread(self, tmp_path):
        token_file = tmp_path / "token"
        token_file.write_text("stale\n")
        store = self.make_store(token=None, token_file=str(token_file))

        with pytest.raises(RemoteUnavailable):
            store.size(self.ref)

        token_file.write_text("drive-token\n")
        assert store.size(self.ref) == len(LOG)

    def test_latest_in_folder(self):
        ref = self.make_store().latest_in_folder("folder-1")

        assert ref == RemoteObjectRef(object_id="newest", name="run.txt")

    def test_latest_in_empty_folder(self):
        with pytest.raises(RemoteUnavailable):
            self.make_store().latest_in_folder("empty-folder")


class TestLocalFileStore:
    """Test LocalFileStore."""

    def test_size_and_range(self, tmp_path):
        path = tmp_path / "source.log"
        path.write_bytes(LOG)
        ref = RemoteObjectRef(object_id=str(path))
        store = LocalFileStore()

        assert store.size(ref) == len(LOG)
        assert store.read_range(ref, 9, 16) == b"line two"

    def test_missing_source(self, tmp_path):
        ref = RemoteObjectRef(object_id=str(tmp_path / "nope.log"))

        with pytest.raises(RemoteUnavailable) as exc_info:
            LocalFileStore().size(ref)

        assert exc_info.value.permanent


def full_body_drive_handler(request: httpx.Request) -> httpx.Response:
    """Drive double that ignores Range and always sends the whole file."""
    if request.url.params.get("alt") == "media":
        return httpx.Response(200, content=LOG)
    return httpx.Response(200, json={"size": str(len(LOG))})


class TestDriveRangeNotHonored:
    """Test DriveStore when the server answers a ranged GET with 200."""

    ref = RemoteObjectRef(object_id="file-1")

    def make_store(self):
        return DriveStore(
            token="drive-token",
            client=httpx.Client(transport=httpx.MockTransport(full_body_drive_handler)),
        )

    def test_body_is_sliced(self):
        assert self.make_store().read_range(self.ref, 9, 16) == b"line two"

    def test_mirror_stays_byte_exact(self, tmp_path):
        """Test repeated cycles keep the mirror equal to the remote."""
        local_path = tmp_path / "live_log.txt"
        local_path.write_bytes(LOG[:9])
        orchestrator = SyncOrchestrator(
            store=self.make_store(),
            ref=self.ref,
            local_log_file=local_path,
            reversed_log_file=tmp_path / "live_log_reversed.txt",
        )

        orchestrator.run_cycle()
        second = orchestrator.run_cycle()

        assert local_path.read_bytes() == LOG
        assert second.outcome == CycleOutcome.UNCHANGED


def listing_handler(body: bytes):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=body, headers={"Content-Type": "application/json"})

    return handler


class TestLatestInFolderMalformed:
    """Test latest_in_folder against malformed listings."""

    @pytest.mark.parametrize(
        "body",
        [b"not json", b"[]", b'{"files": [{"name": "run.txt"}]}'],
    )
    def test_wrapped_as_remote_unavailable(self, body):
        store = DriveStore(
            token="drive-token",
            client=httpx.Client(transport=httpx.MockTransport(listing_handler(body))),
        )

        with pytest.raises(RemoteUnavailable):
            store.latest_in_folder("folder-1")
