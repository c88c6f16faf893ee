"""
logmirror - incremental mirror of a remote append-only log.

This package keeps two local copies of a remote log file:
- A canonical mirror, byte-identical to the remote, grown by ranged downloads
- A reversed copy, newest line first, grown by prepending reversed chunks

Only bytes added upstream since the last cycle are ever downloaded or
transformed.
"""

__version__ = "0.1.0"

__all__ = [
    "api",
    "errors",
    "remote",
    "scheduler",
    "sync",
    "utils",
]
