"""
Error types shared by the client and the views
"""
from .errors import (
    ERROR_CODES,
    TicketDeskError,
    AuthError,
    NotFoundError,
    TicketValidationError,
    InvalidTransitionError,
    NetworkError,
    ServerError,
    ShapeError,
    RequestRejectedError,
    error_for_status,
    generate_trace_id,
)

__all__ = [
    "ERROR_CODES",
    "TicketDeskError",
    "AuthError",
    "NotFoundError",
    "TicketValidationError",
    "InvalidTransitionError",
    "NetworkError",
    "ServerError",
    "ShapeError",
    "RequestRejectedError",
    "error_for_status",
    "generate_trace_id",
]
