# src/screencast_tasks/core/errors.py

from __future__ import annotations


class ScreencastTasksError(Exception):
    """Base class for errors raised by this package."""


class DecodeError(ScreencastTasksError):
    """A persisted payload does not match exactly one known task shape."""


class StoreError(ScreencastTasksError):
    """A persistence call (connect/query/commit) failed."""


class CollaboratorError(ScreencastTasksError):
    """An external service call failed (transport, status or response shape)."""

    def __init__(self, service: str, message: str) -> None:
        super().__init__(f"{service}: {message}")
        self.service = service
        self.message = message
