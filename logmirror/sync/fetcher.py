"""
Ranged download of new bytes from the remote object.
"""

from logmirror.errors import EmptyDownload
from logmirror.remote.base import RemoteObjectRef, RemoteStore
from logmirror.utils.logging import get_logger

logger = get_logger(__name__)


class RangeFetcher:
    """
    Downloads inclusive byte intervals from a remote store.

    No retries happen here; a failed fetch aborts the current cycle and the
    next scheduled cycle tries again from the same watermark.
    """

    def __init__(self, store: RemoteStore):
        self._store = store

    def fetch_range(self, ref: RemoteObjectRef, start: int, end: int) -> bytes:
        """
        Fetch bytes ``start`` through ``end`` inclusive.

        Args:
            ref: Remote object reference
            start: First byte offset (0-indexed)
            end: Last byte offset (inclusive)

        Returns:
            Downloaded bytes, never more than the interval length

        Raises:
            ValueError: If the interval is invalid
            EmptyDownload: If zero bytes were returned
            RemoteUnavailable: If the transport failed
        """
        if start < 0 or end < start:
            raise ValueError(f"Invalid byte range [{start}, {end}]")

        expected = end - start + 1

        logger.info(
            "Downloading range",
            ref=ref.object_id,
            start=start,
            end=end,
            expected_bytes=expected,
        )

        data = self._store.read_range(ref, start, end)

        if not data:
            raise EmptyDownload(
                "Received empty download for a non-empty range",
                ref=ref.object_id,
                start=start,
                end=end,
                expected_bytes=expected,
            )

        if len(data) != expected:
            logger.warning(
                "Downloaded size mismatch",
                ref=ref.object_id,
                expected=expected,
                actual=len(data),
                difference=len(data) - expected,
            )

        # Bytes past the requested end would push the mirror beyond the remote
        return data[:expected]
