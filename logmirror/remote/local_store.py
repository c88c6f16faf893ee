"""Remote store backed by a file on the local disk (development and demos)."""

import os

from logmirror.errors import RemoteUnavailable
from logmirror.remote.base import RemoteObjectRef, RemoteStore


class LocalFileStore(RemoteStore):
    """
    Treats a local file as the remote log.

    The RemoteObjectRef object_id is the file path. Useful for pointing the
    mirror at a log that another process on the same machine appends to.
    """

    def size(self, ref: RemoteObjectRef) -> int:
        try:
            return os.stat(ref.object_id).st_size
        except FileNotFoundError as e:
            raise RemoteUnavailable(
                f"Source file not found: {ref.object_id}",
                permanent=True,
                ref=ref.object_id,
            ) from e
        except OSError as e:
            raise RemoteUnavailable(str(e), ref=ref.object_id) from e

    def read_range(self, ref: RemoteObjectRef, start: int, end: int) -> bytes:
        try:
            with open(ref.object_id, "rb") as f:
                f.seek(start)
                return f.read(end - start + 1)
        except OSError as e:
            raise RemoteUnavailable(
                str(e), ref=ref.object_id, start=start, end=end
            ) from e
