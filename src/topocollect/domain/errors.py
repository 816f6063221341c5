"""Errors raised while running refresh cycles."""

from __future__ import annotations


class CollectorError(RuntimeError):
    """Base class for failures surfaced by the collector or its collaborators."""


class TransportError(CollectorError):
    """Raised when a collaborator (cloud API, inventory sink) cannot be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProtocolViolation(CollectorError):
    """Raised when a collaborator breaks the upload/sweep contract."""
