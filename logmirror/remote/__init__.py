"""
Remote log sources.

Each store answers two questions about a remote object: how big is it, and
what are the bytes in an inclusive range.
"""

from logmirror.remote.base import RemoteObjectRef, RemoteStore
from logmirror.remote.drive_store import DriveStore
from logmirror.remote.factory import create_store
from logmirror.remote.http_store import HttpRangeStore
from logmirror.remote.local_store import LocalFileStore

__all__ = [
    "DriveStore",
    "HttpRangeStore",
    "LocalFileStore",
    "RemoteObjectRef",
    "RemoteStore",
    "create_store",
]
