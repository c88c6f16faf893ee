"""Read-only remote store abstraction for log mirroring."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RemoteObjectRef:
    """
    Identifies a remote blob.

    Attributes:
        object_id: Opaque identifier understood by the store (URL, file id, path)
        name: Optional human-readable name
    """
    object_id: str
    name: Optional[str] = None

    def __str__(self) -> str:
        return self.name or self.object_id


class RemoteStore(ABC):
    """
    Minimal interface a remote log source must offer.

    Implementations raise RemoteUnavailable for every transport or protocol
    failure, flagging not-found / unauthorized answers as permanent.
    """

    @abstractmethod
    def size(self, ref: RemoteObjectRef) -> int:
        """Return the current byte length of the remote object."""

    @abstractmethod
    def read_range(self, ref: RemoteObjectRef, start: int, end: int) -> bytes:
        """Return bytes ``start`` through ``end`` inclusive."""

    def close(self) -> None:
        """Release transport resources."""
