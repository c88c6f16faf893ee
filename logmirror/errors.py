"""
Error taxonomy for the sync engine.

Every error records the step that failed and the byte offsets or paths
involved so callers can log and diagnose without re-deriving context.
"""

from typing import Any, Dict, Optional


class MirrorError(Exception):
    """Base class for all sync engine failures."""

    step = "unknown"

    def __init__(self, message: str, step: Optional[str] = None, **details: Any):
        super().__init__(message)
        if step is not None:
            self.step = step
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form for logs and API responses."""
        return {
            "error": type(self).__name__,
            "message": str(self),
            "step": self.step,
            **self.details,
        }


class RemoteUnavailable(MirrorError):
    """
    Remote store could not be reached or answered with something unusable.

    Attributes:
        permanent: True for not-found / unauthorized answers that will not
            heal by themselves, False for transient failures.
    """

    step = "remote"

    def __init__(self, message: str, permanent: bool = False, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.permanent = permanent
        self.details["permanent"] = permanent


class EmptyDownload(MirrorError):
    """Zero bytes came back for a non-empty byte range."""

    step = "fetch"


class RemoteShrank(MirrorError):
    """Remote object is smaller than the local mirror. Non-fatal anomaly."""

    step = "probe"


class StorageWriteFailed(MirrorError):
    """Writing to the canonical mirror or the reversed file failed."""

    step = "storage"


class CycleAlreadyInProgress(MirrorError):
    """Another sync cycle holds the single-flight guard."""

    step = "guard"
