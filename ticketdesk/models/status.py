"""
Ticket status vocabulary

The support API speaks in lower-case status codes, the desk shows
human-facing labels. The table below is a bijection over the fixed set.
"""
from enum import Enum
from typing import Dict, FrozenSet, Optional


class BackendStatus(str, Enum):
    """Status codes used by the support API"""
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    WORKING_ON = "working_on"
    RESOLVED = "resolved"
    CLOSED = "closed"


class DisplayStatus(str, Enum):
    """Status labels shown to dispatchers and technicians"""
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    WORKING_ON = "Working On"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


STATUS_LABELS: Dict[str, str] = {
    BackendStatus.OPEN.value: DisplayStatus.PENDING.value,
    BackendStatus.IN_PROGRESS.value: DisplayStatus.IN_PROGRESS.value,
    BackendStatus.WORKING_ON.value: DisplayStatus.WORKING_ON.value,
    BackendStatus.RESOLVED.value: DisplayStatus.RESOLVED.value,
    BackendStatus.CLOSED.value: DisplayStatus.CLOSED.value,
}

TERMINAL_STATUSES: FrozenSet[str] = frozenset({
    DisplayStatus.RESOLVED.value,
    DisplayStatus.CLOSED.value,
})


def to_display(code: Optional[str]) -> str:
    """Map a backend code to its label. Unknown codes pass through unchanged."""
    if code is None:
        return ""
    code = str(code.value if isinstance(code, Enum) else code)
    return STATUS_LABELS.get(code, code)


def to_backend(label: Optional[str]) -> Optional[str]:
    """Map a label back to its backend code, or None when nothing matches."""
    if label is None:
        return None
    label = str(label.value if isinstance(label, Enum) else label)
    for code, display in STATUS_LABELS.items():
        if display == label:
            return code
    return None


def is_terminal(label: Optional[str]) -> bool:
    if label is None:
        return False
    label = str(label.value if isinstance(label, Enum) else label)
    return label in TERMINAL_STATUSES
