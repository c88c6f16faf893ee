"""
Size probing for the remote object and the local mirror.
"""

import os
from pathlib import Path
from typing import Union

from logmirror.errors import RemoteUnavailable
from logmirror.remote.base import RemoteObjectRef, RemoteStore
from logmirror.utils.logging import get_logger

logger = get_logger(__name__)


class SizeProbe:
    """Answers "how many bytes exist" for both ends of the mirror."""

    def __init__(self, store: RemoteStore):
        self._store = store

    def remote_size(self, ref: RemoteObjectRef) -> int:
        """
        Get the current byte length of the remote object.

        Args:
            ref: Remote object reference

        Returns:
            Size in bytes

        Raises:
            RemoteUnavailable: If the remote is unreachable or the size is malformed
        """
        size = self._store.size(ref)

        if isinstance(size, bool) or not isinstance(size, int) or size < 0:
            raise RemoteUnavailable(
                f"Malformed remote size: {size!r}",
                step="probe",
                ref=ref.object_id,
            )

        return size

    @staticmethod
    def local_size(path: Union[str, Path]) -> int:
        """
        Get the byte length of a local file.

        Args:
            path: File path

        Returns:
            Size in bytes, or 0 if the file does not exist
        """
        try:
            return os.stat(path).st_size
        except FileNotFoundError:
            logger.debug("Local file does not exist", path=str(path))
            return 0
