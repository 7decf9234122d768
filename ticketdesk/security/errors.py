"""
Desk Errors - Typed failures for support API calls and user actions

This module provides:
- Error codes mapped to user-friendly messages
- Trace ID generation for log correlation
- The exception hierarchy raised by the ticket client and view controllers
- Mapping from HTTP status codes to exceptions

Usage:
    from ticketdesk.security.errors import NotFoundError, error_for_status

    raise NotFoundError(internal_message="ticket T-1 missing")

    # In the HTTP layer
    raise error_for_status(response.status_code, internal_message=response.text)
"""

import uuid
import logging
from typing import Optional, Dict, Any
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


# Error codes mapped to user-friendly messages
# These messages are safe to show to end users
ERROR_CODES: Dict[str, str] = {
    "E001": "An unexpected error occurred. Please try again later.",
    "E003": "The support service is temporarily unavailable. Please try again.",
    "E004": "The support service rejected the request.",
    "E005": "Your session has expired. Please sign in again.",
    "E006": "You don't have permission to access this resource.",
    "E007": "The requested ticket was not found.",
    "E009": "Please complete the required fields.",
    "E010": "The support service returned an error. Please try again later.",
    "E011": "Request timeout. Please try again.",
    "E013": "Unexpected response from the support service.",
    "E014": "This status change is not available for the ticket.",
}

# Default HTTP status codes for each error type
DEFAULT_STATUS_CODES: Dict[str, int] = {
    "E001": 500,
    "E003": 503,
    "E004": 400,
    "E005": 401,
    "E006": 403,
    "E007": 404,
    "E009": 422,
    "E010": 500,
    "E011": 504,
    "E013": 502,
    "E014": 409,
}


def generate_trace_id() -> str:
    """
    Generate a unique trace ID for error correlation.

    Returns:
        A unique trace ID string (UUID4)
    """
    return str(uuid.uuid4())


class TicketDeskError(Exception):
    """
    Base exception for the desk.

    Attributes:
        code: Error code (E001-E014)
        message: User-friendly message (auto-generated from code if not provided)
        status_code: HTTP status code associated with the failure
        trace_id: Unique ID for log correlation
        internal_message: Detailed message for logging (never shown to users)
        context: Additional context for logging (never shown to users)
    """

    default_code = "E001"

    def __init__(
        self,
        code: Optional[str] = None,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        internal_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.code = code or self.default_code
        self.message = message or ERROR_CODES.get(self.code, ERROR_CODES["E001"])
        self.status_code = status_code or DEFAULT_STATUS_CODES.get(self.code, 500)
        self.trace_id = generate_trace_id()
        self.internal_message = internal_message
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()

        super().__init__(self.message)

    def to_notification(self) -> Dict[str, Any]:
        """Safe payload for a user-facing notification."""
        return {
            "code": self.code,
            "message": self.message,
            "trace_id": self.trace_id,
        }

    def log_error(self, logger_instance: Optional[logging.Logger] = None) -> None:
        """
        Log the error with full details (for debugging).

        Args:
            logger_instance: Optional logger to use
        """
        log = logger_instance or logger
        log.error(
            f"{type(self).__name__} [{self.code}]: {self.internal_message or self.message}",
            extra={
                "error_code": self.code,
                "trace_id": self.trace_id,
                "status_code": self.status_code,
                "context": self.context,
            }
        )


class AuthError(TicketDeskError):
    """401/403 from the support API. The session has already been invalidated."""
    default_code = "E005"


class NotFoundError(TicketDeskError):
    default_code = "E007"


class TicketValidationError(TicketDeskError):
    """Rejected on the client before any request was sent"""
    default_code = "E009"


class InvalidTransitionError(TicketValidationError):
    default_code = "E014"


class NetworkError(TicketDeskError):
    """Timeout or transport failure"""
    default_code = "E003"


class ServerError(TicketDeskError):
    """5xx response or a body that is not JSON"""
    default_code = "E010"


class ShapeError(TicketDeskError):
    """Valid JSON of an unexpected shape"""
    default_code = "E013"


class RequestRejectedError(TicketDeskError):
    """Any other 4xx response"""
    default_code = "E004"


def error_for_status(
    status_code: int,
    internal_message: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
) -> TicketDeskError:
    """Build the exception matching an HTTP error status."""
    if status_code == 401:
        return AuthError(status_code=401, internal_message=internal_message, context=context)
    if status_code == 403:
        return AuthError("E006", status_code=403, internal_message=internal_message, context=context)
    if status_code == 404:
        return NotFoundError(internal_message=internal_message, context=context)
    if status_code == 504:
        return NetworkError("E011", status_code=504, internal_message=internal_message, context=context)
    if status_code >= 500:
        return ServerError(status_code=status_code, internal_message=internal_message, context=context)
    return RequestRejectedError(status_code=status_code, internal_message=internal_message, context=context)
