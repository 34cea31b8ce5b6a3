"""Domain errors shared by the scorer, connection manager and placement engine."""

from __future__ import annotations


class OrbitError(Exception):
    """Base class for domain errors surfaced to the caller."""

    reason: str = "unknown"
    status_code: int = 400

    def __init__(self, message: str | None = None, reason: str | None = None) -> None:
        super().__init__(message or self.reason)
        self.message = message or self.reason
        if reason:
            self.reason = reason


class ValidationError(OrbitError):
    reason = "invalid"
    status_code = 400


class NotFoundError(OrbitError):
    reason = "not_found"
    status_code = 404


class AuthorizationError(OrbitError):
    reason = "forbidden"
    status_code = 403


class ConflictError(OrbitError):
    reason = "conflict"
    status_code = 409


class StoreUnavailable(OrbitError):
    """Raised when the backing store cannot be reached or fails mid-operation."""

    reason = "store_unavailable"
    status_code = 503
