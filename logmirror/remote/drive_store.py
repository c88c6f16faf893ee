"""
Google Drive remote store.

Talks to the Drive v3 REST API directly with a bearer token. Obtaining and
refreshing the token is left to an external process: either pass a static
token or point ``token_file`` at a file that process keeps current.
"""

from pathlib import Path
from typing import Optional

import httpx

from logmirror.errors import RemoteUnavailable
from logmirror.remote.base import RemoteObjectRef, RemoteStore
from logmirror.remote.http_store import raise_for_remote_status, range_header, ranged_body
from logmirror.utils.logging import get_logger

logger = get_logger(__name__)

DRIVE_API_BASE = "https://www.googleapis.com/drive/v3"


class DriveStore(RemoteStore):
    """
    Remote store backed by a Google Drive file.

    The RemoteObjectRef object_id is the Drive file id.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        token_file: Optional[str] = None,
        timeout_seconds: float = 30.0,
        base_url: str = DRIVE_API_BASE,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize Drive store.

        Args:
            token: Static OAuth access token
            token_file: File holding the current access token (re-read per request)
            timeout_seconds: Request timeout
            base_url: Drive API base URL
            client: Pre-built client (tests inject a MockTransport here)

        Raises:
            ValueError: If neither token nor token_file is given
        """
        if not token and not token_file:
            raise ValueError("DriveStore needs a token or a token_file")

        self._token = token
        self._token_file = Path(token_file).expanduser() if token_file else None
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout_seconds)

    def _auth_headers(self) -> dict:
        token = self._token
        if self._token_file is not None:
            try:
                token = self._token_file.read_text().strip()
            except OSError as e:
                raise RemoteUnavailable(
                    f"Cannot read token file: {e}",
                    permanent=True,
                    token_file=str(self._token_file),
                ) from e
        return {"Authorization": f"Bearer {token}"}

    def _get(self, ref: RemoteObjectRef, url: str, **kwargs) -> httpx.Response:
        headers = {**self._auth_headers(), **kwargs.pop("headers", {})}
        try:
            response = self._client.get(url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteUnavailable(
                f"Drive request failed: {e}", ref=ref.object_id
            ) from e
        raise_for_remote_status(response, ref)
        return response

    def size(self, ref: RemoteObjectRef) -> int:
        response = self._get(
            ref,
            f"{self._base_url}/files/{ref.object_id}",
            params={"fields": "size"},
        )

        try:
            raw = response.json().get("size")
        except (ValueError, AttributeError) as e:
            raise RemoteUnavailable(
                "Drive size response is not JSON", ref=ref.object_id
            ) from e

        try:
            size = int(raw)
        except (TypeError, ValueError):
            raise RemoteUnavailable(
                f"Invalid file size returned: {raw!r}",
                ref=ref.object_id,
            )

        logger.debug("Drive file size", file_id=ref.object_id, size=size)
        return size

    def read_range(self, ref: RemoteObjectRef, start: int, end: int) -> bytes:
        response = self._get(
            ref,
            f"{self._base_url}/files/{ref.object_id}",
            params={"alt": "media"},
            headers=range_header(start, end),
        )
        return ranged_body(response, ref, start, end)

    def latest_in_folder(self, folder_id: str) -> RemoteObjectRef:
        """
        Resolve the most recently modified text file in a Drive folder.

        Args:
            folder_id: Drive folder id

        Returns:
            Reference to the newest file

        Raises:
            RemoteUnavailable: If the folder is unreachable or empty
        """
        folder_ref = RemoteObjectRef(object_id=folder_id)
        response = self._get(
            folder_ref,
            f"{self._base_url}/files",
            params={
                "q": f"'{folder_id}' in parents and mimeType='text/plain'",
                "orderBy": "modifiedTime desc",
                "pageSize": 1,
                "fields": "files(id, name, modifiedTime)",
            },
        )

        try:
            files = response.json().get("files") or []
        except (ValueError, AttributeError) as e:
            raise RemoteUnavailable(
                "Drive file listing is not a JSON object", folder_id=folder_id
            ) from e

        if not files:
            raise RemoteUnavailable(
                "No files found in the folder",
                permanent=True,
                folder_id=folder_id,
            )

        newest = files[0]
        file_id = newest.get("id") if isinstance(newest, dict) else None
        if not file_id:
            raise RemoteUnavailable(
                "Drive file listing entry has no id",
                folder_id=folder_id,
                entry=repr(newest),
            )

        logger.info(
            "Resolved latest file in folder",
            folder_id=folder_id,
            file_id=file_id,
            name=newest.get("name"),
            modified_time=newest.get("modifiedTime"),
        )
        return RemoteObjectRef(object_id=file_id, name=newest.get("name"))

    def close(self) -> None:
        self._client.close()
