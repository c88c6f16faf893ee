"""HTTP API for the mirrored log."""

from logmirror.api.app import create_app, router

__all__ = ["create_app", "router"]
