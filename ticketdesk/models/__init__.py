"""
Pydantic models for data validation
"""
from .status import (
    BackendStatus,
    DisplayStatus,
    STATUS_LABELS,
    TERMINAL_STATUSES,
    to_display,
    to_backend,
    is_terminal,
)
from .ticket import (
    Ticket,
    TechnicianTicket,
    Technician,
    Note,
    TicketPriority,
    TicketCategory,
    AssignTicketData,
    TicketCreate,
)
from .stats import DashboardStats

__all__ = [
    "BackendStatus",
    "DisplayStatus",
    "STATUS_LABELS",
    "TERMINAL_STATUSES",
    "to_display",
    "to_backend",
    "is_terminal",
    "Ticket",
    "TechnicianTicket",
    "Technician",
    "Note",
    "TicketPriority",
    "TicketCategory",
    "AssignTicketData",
    "TicketCreate",
    "DashboardStats",
]
