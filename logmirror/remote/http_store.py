"""
Plain HTTP remote store.

Any server that reports Content-Length on HEAD and honors the Range header
on GET can act as the remote log source.
"""

from typing import Dict, Optional

import httpx

from logmirror.errors import RemoteUnavailable
from logmirror.remote.base import RemoteObjectRef, RemoteStore
from logmirror.utils.logging import get_logger

logger = get_logger(__name__)

PERMANENT_STATUS_CODES = frozenset({401, 403, 404, 410})


def raise_for_remote_status(response: httpx.Response, ref: RemoteObjectRef) -> None:
    """
    Translate an HTTP error answer into RemoteUnavailable.

    Args:
        response: Response to inspect
        ref: Object the request was about

    Raises:
        RemoteUnavailable: If the status is not 2xx
    """
    if response.is_success:
        return

    raise RemoteUnavailable(
        f"Remote answered HTTP {response.status_code} for {ref}",
        permanent=response.status_code in PERMANENT_STATUS_CODES,
        status_code=response.status_code,
        ref=ref.object_id,
    )


def range_header(start: int, end: int) -> Dict[str, str]:
    """Build an inclusive byte Range header."""
    return {"Range": f"bytes={start}-{end}"}


def ranged_body(
    response: httpx.Response,
    ref: RemoteObjectRef,
    start: int,
    end: int,
) -> bytes:
    """
    Body of a ranged GET, limited to ``[start, end]``.

    A 200 answer means the server ignored the Range header and sent the
    whole object, so the requested window is cut out of it.

    Args:
        response: Successful response to a ranged request
        ref: Object the request was about
        start: First byte offset requested
        end: Last byte offset requested (inclusive)

    Returns:
        Bytes of the requested window
    """
    if response.status_code == 200:
        logger.warning(
            "Range not honored, slicing full body",
            ref=ref.object_id,
            body_size=len(response.content),
            start=start,
            end=end,
        )
        return response.content[start:end + 1]

    return response.content


class HttpRangeStore(RemoteStore):
    """
    Remote store backed by HTTP HEAD and ranged GET.

    The RemoteObjectRef object_id is the absolute URL of the log file.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        timeout_seconds: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize HTTP store.

        Args:
            token: Optional bearer token sent with every request
            timeout_seconds: Request timeout
            client: Pre-built client (tests inject a MockTransport here)
        """
        # Byte offsets must refer to the stored file, not a compressed encoding
        self._headers = {"Accept-Encoding": "identity"}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.Client(
            timeout=timeout_seconds,
            follow_redirects=True,
        )

    def size(self, ref: RemoteObjectRef) -> int:
        try:
            response = self._client.head(ref.object_id, headers=self._headers)
        except httpx.HTTPError as e:
            raise RemoteUnavailable(
                f"Size query failed: {e}", ref=ref.object_id
            ) from e

        raise_for_remote_status(response, ref)

        raw = response.headers.get("Content-Length")
        try:
            size = int(raw)
        except (TypeError, ValueError):
            raise RemoteUnavailable(
                f"Malformed Content-Length: {raw!r}",
                ref=ref.object_id,
            )

        logger.debug("Remote size", ref=ref.object_id, size=size)
        return size

    def read_range(self, ref: RemoteObjectRef, start: int, end: int) -> bytes:
        try:
            response = self._client.get(
                ref.object_id,
                headers={**self._headers, **range_header(start, end)},
            )
        except httpx.HTTPError as e:
            raise RemoteUnavailable(
                f"Range download failed: {e}",
                ref=ref.object_id,
                start=start,
                end=end,
            ) from e

        raise_for_remote_status(response, ref)
        return ranged_body(response, ref, start, end)

    def close(self) -> None:
        self._client.close()
