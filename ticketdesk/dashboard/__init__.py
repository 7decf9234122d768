"""
Dispatcher and technician views
"""
from .notifications import Notification, NotificationCenter
from .assignment_console import AssignmentConsole, STATUS_FILTER_OPTIONS
from .technician_board import (
    TechnicianBoard,
    BoardAction,
    LANES,
    TRANSITIONS,
    TABS,
    available_actions,
    filter_tickets,
)
from .technician_dashboard import TechnicianDashboard

__all__ = [
    "Notification",
    "NotificationCenter",
    "AssignmentConsole",
    "STATUS_FILTER_OPTIONS",
    "TechnicianBoard",
    "BoardAction",
    "LANES",
    "TRANSITIONS",
    "TABS",
    "available_actions",
    "filter_tickets",
    "TechnicianDashboard",
]
