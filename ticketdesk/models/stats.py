"""
Dashboard aggregate models
"""
from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import Iterable, Optional

from .status import DisplayStatus
from .ticket import Ticket


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DashboardStats(BaseModel):
    """Point-in-time ticket counts for one technician. Always rebuilt, never patched."""
    pending: int = 0
    in_progress: int = 0
    working_on: int = 0
    resolved: int = 0
    closed: int = 0
    completed_today: int = 0
    total_assigned: int = 0
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_tickets(cls, tickets: Iterable[Ticket], now: Optional[datetime] = None) -> "DashboardStats":
        now = _as_utc(now or datetime.now(timezone.utc))
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)

        counts = {status.value: 0 for status in DisplayStatus}
        completed_today = 0
        total = 0
        for ticket in tickets:
            total += 1
            if ticket.status in counts:
                counts[ticket.status] += 1
            if ticket.status == DisplayStatus.RESOLVED.value:
                stamp = ticket.updated_at or ticket.created_at
                if stamp is not None and _as_utc(stamp) >= start_of_day:
                    completed_today += 1

        return cls(
            pending=counts[DisplayStatus.PENDING.value],
            in_progress=counts[DisplayStatus.IN_PROGRESS.value],
            working_on=counts[DisplayStatus.WORKING_ON.value],
            resolved=counts[DisplayStatus.RESOLVED.value],
            closed=counts[DisplayStatus.CLOSED.value],
            completed_today=completed_today,
            total_assigned=total,
            last_updated=now,
        )
