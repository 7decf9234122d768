"""
Support API client and lifecycle notification
"""
from .ticket_directory import (
    TicketDirectoryClient,
    TechnicianRoster,
    STATUS_FILTER_ALL,
    TECHNICIAN_BOARD_STATUSES,
)
from .lifecycle import (
    TICKET_UPDATED,
    LifecycleBus,
    Subscription,
    Poller,
    get_lifecycle_bus,
)

__all__ = [
    "TicketDirectoryClient",
    "TechnicianRoster",
    "STATUS_FILTER_ALL",
    "TECHNICIAN_BOARD_STATUSES",
    "TICKET_UPDATED",
    "LifecycleBus",
    "Subscription",
    "Poller",
    "get_lifecycle_bus",
]
