"""
Append-only writer for the canonical mirror file.

The canonical mirror holds the remote log byte-for-byte in its original
oldest-first order. It is only ever appended to, except for the rollback
truncate that keeps it paired with the reversed file.
"""

import os
from pathlib import Path
from typing import Union

from logmirror.errors import StorageWriteFailed
from logmirror.utils.logging import get_logger

logger = get_logger(__name__)


class MirrorAppender:
    """
    Appends chunks to the canonical mirror.

    Attributes:
        fsync_on_append: Whether to fsync after each append
    """

    FILE_MODE = 0o644

    def __init__(self, fsync_on_append: bool = False):
        self.fsync_on_append = fsync_on_append

    def append(self, path: Union[str, Path], data: bytes) -> int:
        """
        Append bytes to a file, creating it and its parent directory if absent.

        Args:
            path: Canonical mirror path
            data: Bytes to append

        Returns:
            Number of bytes written

        Raises:
            StorageWriteFailed: If the directory or file cannot be written
        """
        path = Path(path)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)

            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, self.FILE_MODE)
            try:
                view = memoryview(data)
                written = 0
                while written < len(view):
                    written += os.write(fd, view[written:])

                if self.fsync_on_append:
                    os.fsync(fd)
            finally:
                os.close(fd)
        except OSError as e:
            raise StorageWriteFailed(
                f"Append to canonical mirror failed: {e}",
                step="append",
                path=str(path),
                bytes=len(data),
            ) from e

        logger.debug("Appended to canonical mirror", path=str(path), bytes=written)
        return written

    def truncate(self, path: Union[str, Path], length: int) -> None:
        """
        Cut a file back to a previous length.

        Args:
            path: Canonical mirror path
            length: Length to restore

        Raises:
            StorageWriteFailed: If truncation fails
        """
        try:
            os.truncate(path, length)
        except FileNotFoundError:
            if length != 0:
                raise StorageWriteFailed(
                    "Canonical mirror vanished before rollback",
                    step="rollback",
                    path=str(path),
                    length=length,
                )
        except OSError as e:
            raise StorageWriteFailed(
                f"Rollback truncate failed: {e}",
                step="rollback",
                path=str(path),
                length=length,
            ) from e

        logger.warning("Rolled back canonical mirror", path=str(path), length=length)
