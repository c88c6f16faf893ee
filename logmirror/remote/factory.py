"""Factory for creating the remote store and object reference from configuration."""

from typing import Tuple

from logmirror.remote.base import RemoteObjectRef, RemoteStore
from logmirror.utils.config import Config
from logmirror.utils.logging import get_logger

logger = get_logger(__name__)


def create_store(config: Config) -> Tuple[RemoteStore, RemoteObjectRef]:
    """
    Create a RemoteStore and the reference of the log it should mirror.

    Args:
        config: Application configuration

    Returns:
        Tuple of (store, ref)

    Raises:
        ValueError: If required configuration is missing or the backend is unsupported
    """
    backend = str(config.get("remote.backend", "http")).lower()

    if backend == "http":
        return _create_http_store(config)
    if backend == "drive":
        return _create_drive_store(config)
    if backend == "local":
        return _create_local_store(config)

    raise ValueError(f"Unsupported remote backend: {backend!r}. Supported: http, drive, local")


def _create_http_store(config: Config) -> Tuple[RemoteStore, RemoteObjectRef]:
    from logmirror.remote.http_store import HttpRangeStore

    url = config.get("remote.url")
    if not url:
        raise ValueError("remote.url is required for the http backend")

    store = HttpRangeStore(
        token=config.get("remote.token"),
        timeout_seconds=float(config.get("remote.timeout_seconds", 30.0)),
    )
    return store, RemoteObjectRef(object_id=url)


def _create_drive_store(config: Config) -> Tuple[RemoteStore, RemoteObjectRef]:
    from logmirror.remote.drive_store import DriveStore

    store = DriveStore(
        token=config.get("remote.token"),
        token_file=config.get("remote.token_file"),
        timeout_seconds=float(config.get("remote.timeout_seconds", 30.0)),
    )

    file_id = config.get("remote.file_id")
    if file_id:
        return store, RemoteObjectRef(object_id=file_id)

    folder_id = config.get("remote.folder_id")
    if not folder_id:
        store.close()
        raise ValueError("remote.file_id or remote.folder_id is required for the drive backend")

    logger.info("Resolving newest file in Drive folder", folder_id=folder_id)
    return store, store.latest_in_folder(folder_id)


def _create_local_store(config: Config) -> Tuple[RemoteStore, RemoteObjectRef]:
    from logmirror.remote.local_store import LocalFileStore

    path = config.get("remote.path")
    if not path:
        raise ValueError("remote.path is required for the local backend")

    return LocalFileStore(), RemoteObjectRef(object_id=path)
