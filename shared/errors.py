"""
Shared error handling for the TripDesk data layer.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from shared.logging import correlation_id_var


class ErrorResponse(BaseModel):
    """Standard error payload handed to the view layer for notifications."""

    correlation_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class TripDeskError(Exception):
    """Base exception for the TripDesk data layer."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None,
                 correlation_id: Optional[str] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        self.correlation_id = correlation_id
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            correlation_id=self.correlation_id or correlation_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class RemoteError(TripDeskError):
    """Non-2xx response from the remote store, surfaced verbatim."""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(
            "REMOTE_ERROR",
            f"Store returned {status}: {body}",
            {"status": status, "body": body}
        )


class StoreUnavailableError(TripDeskError):
    """Transport-level failure talking to the remote store."""

    def __init__(self, message: str = "Store unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_UNAVAILABLE", message, details)


class FetchError(TripDeskError):
    """A failed cache fetch. Stored on the cache entry, never raised by reads."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        details: Dict[str, Any] = {"cause": type(cause).__name__}
        if isinstance(cause, TripDeskError):
            details["cause_code"] = cause.code
        super().__init__("FETCH_ERROR", f"Fetch failed: {cause}", details)


class MutationError(TripDeskError):
    """A failed write. The cache is left exactly as it was before the attempt."""

    def __init__(self, operation: str, cause: BaseException, correlation_id: Optional[str] = None):
        self.operation = operation
        self.cause = cause
        details: Dict[str, Any] = {"operation": operation, "cause": type(cause).__name__}
        if isinstance(cause, RemoteError):
            details["status"] = cause.status
        super().__init__("MUTATION_ERROR", f"Failed to {operation} trip: {cause}", details, correlation_id)
