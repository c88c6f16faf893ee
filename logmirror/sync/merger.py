"""
Prepending reversed blocks onto the newest-first file.

The seam between a new block and the existing content gets exactly one
newline, and the file's overall trailing-newline state always reflects the
oldest data at its tail:

    new ends \\n | existing ends \\n | result
    ------------+------------------+----------------------------
    (existing empty)               | new
    yes         | yes              | new + existing
    yes         | no               | new + existing
    no          | yes              | new + \\n + existing
    no          | no               | new + \\n + existing
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from logmirror.errors import StorageWriteFailed
from logmirror.sync.reverser import NEWLINE
from logmirror.utils.logging import get_logger

logger = get_logger(__name__)


def merge_reversed(reversed_block: bytes, existing: bytes) -> bytes:
    """
    Join a reversed block in front of existing reversed content.

    Args:
        reversed_block: Newest lines, newest first
        existing: Current reversed file content

    Returns:
        Combined content
    """
    if not existing:
        return reversed_block
    if not reversed_block:
        return existing

    # The block's own trailing newline already separates it from the
    # existing content, whatever the existing tail looks like.
    if reversed_block.endswith(NEWLINE):
        return reversed_block + existing

    return reversed_block + NEWLINE + existing


class ReversedMerger:
    """
    Maintains the reversed (newest-first) log file.

    Writes are whole-file rewrites through a temporary sibling and
    os.replace, so readers see either the old or the new file, never a mix.
    The cost is O(file size) per write.
    """

    def __init__(self, fsync_on_write: bool = False):
        self.fsync_on_write = fsync_on_write

    @staticmethod
    def read_existing(path: Union[str, Path]) -> bytes:
        """
        Read current reversed content.

        Args:
            path: Reversed file path

        Returns:
            File content, or empty bytes if the file does not exist

        Raises:
            StorageWriteFailed: If the file exists but cannot be read
        """
        try:
            return Path(path).read_bytes()
        except FileNotFoundError:
            return b""
        except OSError as e:
            raise StorageWriteFailed(
                f"Cannot read reversed file for rewrite: {e}",
                step="merge",
                path=str(path),
            ) from e

    def build(self, path: Union[str, Path], reversed_block: bytes) -> Optional[bytes]:
        """
        Compute the new reversed file content without writing it.

        Args:
            path: Reversed file path
            reversed_block: Block to prepend

        Returns:
            New content, or None if the block is empty and nothing changes
        """
        if not reversed_block:
            return None

        existing = self.read_existing(path)
        return merge_reversed(reversed_block, existing)

    def write(self, path: Union[str, Path], content: bytes) -> None:
        """
        Atomically replace the reversed file.

        Args:
            path: Reversed file path
            content: Full new content

        Raises:
            StorageWriteFailed: If the write or rename fails
        """
        path = Path(path)
        tmp_name = None

        try:
            path.parent.mkdir(parents=True, exist_ok=True)

            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.",
                suffix=".tmp",
                dir=path.parent,
            )
            with os.fdopen(fd, "wb") as f:
                f.write(content)
                if self.fsync_on_write:
                    f.flush()
                    os.fsync(f.fileno())

            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise StorageWriteFailed(
                f"Rewrite of reversed file failed: {e}",
                step="merge",
                path=str(path),
                bytes=len(content),
            ) from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.debug("Rewrote reversed file", path=str(path), size=len(content))

    def prepend(self, path: Union[str, Path], reversed_block: bytes) -> bool:
        """
        Prepend a reversed block to the reversed file.

        Args:
            path: Reversed file path
            reversed_block: Block to prepend

        Returns:
            True if the file changed
        """
        content = self.build(path, reversed_block)
        if content is None:
            logger.debug("Empty reversed block, nothing to prepend", path=str(path))
            return False

        self.write(path, content)
        return True
