# app/services/errors.py
"""
Error taxonomy for backend calls.

NetworkError   — transport failure or timeout, nothing came back
NotFoundError  — HTTP 404, the backend has no data yet
ServerError    — any other HTTP error status
ValidationError — the response does not match the expected shape (surfaced as a ServerError)
"""

from dataclasses import dataclass
from typing import Optional


class DashboardError(Exception):
    """Base class for every error raised by the backend client."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NetworkError(DashboardError):
    pass


class NotFoundError(DashboardError):
    def __init__(self, message: str = "No data available"):
        super().__init__(message, status_code=404)


class ServerError(DashboardError):
    pass


class ValidationError(ServerError):
    pass


@dataclass(frozen=True)
class ErrorInfo:
    """What a snapshot remembers about its most recent failed fetch."""
    kind: str
    message: str
    status_code: Optional[int] = None

    @classmethod
    def from_exception(cls, exc: BaseException, message: Optional[str] = None) -> "ErrorInfo":
        if isinstance(exc, DashboardError):
            return cls(kind=type(exc).__name__, message=message or exc.message,
                       status_code=exc.status_code)
        # Anything outside the taxonomy is reported as a server fault
        return cls(kind=ServerError.__name__, message=message or str(exc) or type(exc).__name__)
