"""
User-facing notifications (the desk's toasts)
"""
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Deque, List, Optional, Union

from ticketdesk.security.errors import TicketDeskError

logger = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"
INFO = "info"


@dataclass
class Notification:
    level: str
    message: str
    trace_id: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationCenter:
    """Bounded queue of transient messages for the person using the desk"""

    def __init__(self, max_items: int = 50):
        self._items: Deque[Notification] = deque(maxlen=max_items)

    @property
    def items(self) -> List[Notification]:
        return list(self._items)

    @property
    def latest(self) -> Optional[Notification]:
        return self._items[-1] if self._items else None

    def success(self, message: str) -> Notification:
        return self._push(Notification(SUCCESS, message))

    def info(self, message: str) -> Notification:
        return self._push(Notification(INFO, message))

    def error(self, error: Union[str, TicketDeskError], prefix: Optional[str] = None) -> Notification:
        """Show an error; desk exceptions contribute only their safe message."""
        if isinstance(error, TicketDeskError):
            message = error.message
            trace_id = error.trace_id
        else:
            message, trace_id = str(error), None
        if prefix:
            message = f"{prefix}: {message}"
        return self._push(Notification(ERROR, message, trace_id=trace_id))

    def clear(self) -> None:
        self._items.clear()

    def _push(self, notification: Notification) -> Notification:
        self._items.append(notification)
        logger.debug(f"[{notification.level}] {notification.message}")
        return notification
