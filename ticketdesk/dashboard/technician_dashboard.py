"""
Technician Dashboard - stats header plus the technician's board

Stays fresh for as long as it is mounted: it re-fetches on every
`ticketUpdated` broadcast and on a fixed poll interval. Each refresh replaces
the stats (and the board's ticket list) wholesale.
"""
import logging
from typing import Any, Awaitable, Callable, Optional

from ticketdesk.config import Settings, settings
from ticketdesk.models import DashboardStats
from ticketdesk.security.errors import AuthError, TicketDeskError
from ticketdesk.services.lifecycle import (
    TICKET_UPDATED,
    LifecycleBus,
    Poller,
    Subscription,
    get_lifecycle_bus,
)
from ticketdesk.services.ticket_directory import TicketDirectoryClient
from .notifications import NotificationCenter
from .technician_board import TechnicianBoard

logger = logging.getLogger(__name__)


class TechnicianDashboard:
    def __init__(
        self,
        client: TicketDirectoryClient,
        technician_id: str,
        bus: Optional[LifecycleBus] = None,
        notifications: Optional[NotificationCenter] = None,
        poll_interval: Optional[float] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
        config: Settings = settings,
    ):
        self.client = client
        self.technician_id = technician_id
        self.bus = bus or get_lifecycle_bus()
        self.notifications = notifications or NotificationCenter()

        self.stats = DashboardStats()
        self.loading = False
        self.mounted = False
        self.refresh_count = 0

        self.board = TechnicianBoard(
            client,
            technician_id,
            bus=self.bus,
            on_update=self.recompute_stats,
            notifications=self.notifications,
            config=config,
        )

        poller_kwargs = {"sleep": sleep} if sleep is not None else {}
        self._poller = Poller(
            self.refresh,
            interval=config.poll_interval_seconds if poll_interval is None else poll_interval,
            name=f"technician-dashboard-{technician_id}",
            **poller_kwargs
        )
        self._subscription: Optional[Subscription] = None

    async def mount(self) -> None:
        """Initial fetch, then listen for broadcasts and start polling."""
        self.mounted = True
        await self.refresh()
        if not self.mounted:
            # The session ended during the first fetch.
            return
        self._subscription = self.bus.subscribe(TICKET_UPDATED, self.refresh)
        self._poller.start()

    async def unmount(self) -> None:
        self.mounted = False
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        await self._poller.stop()

    @property
    def polling(self) -> bool:
        return self._poller.running

    async def refresh(self) -> None:
        if not self.mounted:
            return
        if not self.client.credentials.token:
            await self._end_session()
            return
        self.loading = True
        try:
            tickets = await self.client.list_technician_tickets(self.technician_id)
        except AuthError as e:
            e.log_error(logger)
            await self._end_session()
            return
        except TicketDeskError as e:
            e.log_error(logger)
            self.notifications.error(e, prefix="Failed to load ticket data")
            return
        finally:
            self.loading = False

        # In-flight requests are not cancelled; drop results that land after unmount.
        if not self.mounted:
            logger.debug("Discarding ticket refresh for unmounted dashboard")
            return

        self.board.replace_tickets(tickets)
        self.stats = DashboardStats.from_tickets(tickets)
        self.refresh_count += 1
        logger.debug(
            f"Dashboard for {self.technician_id} refreshed: "
            f"{self.stats.in_progress} in progress, {self.stats.working_on} working on, "
            f"{self.stats.completed_today} completed today"
        )

    async def _end_session(self) -> None:
        """Signed out: stop polling and listening, no further calls."""
        logger.info(f"Session ended, unmounting dashboard for {self.technician_id}")
        await self.unmount()

    def recompute_stats(self) -> None:
        """Rebuild stats from the board's current list without a round trip."""
        self.stats = DashboardStats.from_tickets(self.board.tickets)
