"""
Technician Board - a technician's tickets in three lanes

Lanes are keyed by exact display status: In Progress, Working On, Resolved.
Tickets in any other status are fetched but not shown in a lane; the board is
a work-in-progress view, not a full ticket list.

Transitions offered on cards:

    In Progress --(Start Working)--> Working On
    Working On  --(Mark as Resolved, resolution required)--> Resolved

Resolved and Closed are terminal here.
"""
import inspect
import logging
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from ticketdesk.config import Settings, settings
from ticketdesk.models import DisplayStatus, TechnicianTicket
from ticketdesk.security.errors import (
    AuthError,
    InvalidTransitionError,
    TicketDeskError,
    TicketValidationError,
)
from ticketdesk.services.lifecycle import TICKET_UPDATED, LifecycleBus, get_lifecycle_bus
from ticketdesk.services.ticket_directory import TicketDirectoryClient
from .notifications import NotificationCenter

logger = logging.getLogger(__name__)

LANES = (
    DisplayStatus.IN_PROGRESS.value,
    DisplayStatus.WORKING_ON.value,
    DisplayStatus.RESOLVED.value,
)


class BoardAction(str, Enum):
    """Transition controls a card can show"""
    START_WORKING = "start_working"
    MARK_RESOLVED = "mark_resolved"


# action -> (required current status, target status)
TRANSITIONS: Dict[BoardAction, tuple] = {
    BoardAction.START_WORKING: (DisplayStatus.IN_PROGRESS.value, DisplayStatus.WORKING_ON.value),
    BoardAction.MARK_RESOLVED: (DisplayStatus.WORKING_ON.value, DisplayStatus.RESOLVED.value),
}

# Ticket list tabs
TAB_ALL = "all"
TAB_TICKETS = "tickets"
TAB_IN_PROGRESS = "in-progress"
TAB_COMPLETED = "completed"
TABS = (TAB_ALL, TAB_TICKETS, TAB_IN_PROGRESS, TAB_COMPLETED)


def available_actions(ticket: TechnicianTicket) -> List[BoardAction]:
    return [action for action, (source, _) in TRANSITIONS.items() if ticket.status == source]


def filter_tickets(
    tickets: Iterable[TechnicianTicket],
    tab: str = TAB_ALL,
    search: str = "",
) -> List[TechnicianTicket]:
    """
    Ticket list filtering by tab plus a case-insensitive title/location search.

    `tickets` lists every ticket, like `all`; it is the list page's own tab.
    """
    if tab not in TABS:
        raise ValueError(f"Unknown ticket tab {tab!r}")
    term = search.strip().lower()
    result = []
    for ticket in tickets:
        if term and term not in ticket.title.lower() and term not in (ticket.location or "").lower():
            continue
        if tab == TAB_IN_PROGRESS and ticket.status not in (
            DisplayStatus.IN_PROGRESS.value,
            DisplayStatus.WORKING_ON.value,
        ):
            continue
        if tab == TAB_COMPLETED and ticket.status != DisplayStatus.RESOLVED.value:
            continue
        result.append(ticket)
    return result


class TechnicianBoard:
    """
    Board state for one technician.

    After every confirmed transition the board (1) replaces that one ticket
    in its list, (2) calls `on_update`, (3) publishes `ticketUpdated`.
    """

    def __init__(
        self,
        client: TicketDirectoryClient,
        technician_id: str,
        bus: Optional[LifecycleBus] = None,
        on_update: Optional[Callable[[], Any]] = None,
        notifications: Optional[NotificationCenter] = None,
        config: Settings = settings,
    ):
        self.client = client
        self.technician_id = technician_id
        self.bus = bus or get_lifecycle_bus()
        self.on_update = on_update
        self.notifications = notifications or NotificationCenter()
        self.config = config

        self.tickets: List[TechnicianTicket] = []
        self.selected_ticket_id: Optional[str] = None
        self.loading = False

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    async def refresh(self) -> None:
        self.loading = True
        try:
            tickets = await self.client.list_technician_tickets(self.technician_id)
        except AuthError as e:
            e.log_error(logger)
            return
        except TicketDeskError as e:
            e.log_error(logger)
            self.notifications.error(e, prefix="Failed to load tickets")
            return
        finally:
            self.loading = False
        self.replace_tickets(tickets)

    def replace_tickets(self, tickets: List[TechnicianTicket]) -> None:
        """Swap in a freshly fetched list; the selection survives if its ticket does."""
        self.tickets = list(tickets)
        if self.selected_ticket_id and self.get(self.selected_ticket_id) is None:
            self.selected_ticket_id = None

    def get(self, ticket_id: str) -> Optional[TechnicianTicket]:
        return next((t for t in self.tickets if t.id == ticket_id), None)

    def lanes(self) -> Dict[str, List[TechnicianTicket]]:
        grouped: Dict[str, List[TechnicianTicket]] = {lane: [] for lane in LANES}
        for ticket in self.tickets:
            if ticket.status in grouped:
                grouped[ticket.status].append(ticket)
        return grouped

    def available_actions(self, ticket_id: str) -> List[BoardAction]:
        ticket = self.get(ticket_id)
        return available_actions(ticket) if ticket else []

    # ------------------------------------------------------------------
    # Selection (detail panel)
    # ------------------------------------------------------------------

    def select(self, ticket_id: Optional[str]) -> Optional[TechnicianTicket]:
        if ticket_id is not None and self.get(ticket_id) is None:
            raise KeyError(ticket_id)
        self.selected_ticket_id = ticket_id
        return self.selected_ticket

    @property
    def selected_ticket(self) -> Optional[TechnicianTicket]:
        if self.selected_ticket_id is None:
            return None
        return self.get(self.selected_ticket_id)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def start_working(self, ticket_id: str) -> Optional[TechnicianTicket]:
        return await self._transition(ticket_id, BoardAction.START_WORKING)

    async def mark_resolved(self, ticket_id: str, resolution: Optional[str] = None) -> Optional[TechnicianTicket]:
        text = (resolution or "").strip() or self.config.default_resolution
        return await self._transition(ticket_id, BoardAction.MARK_RESOLVED, resolution=text)

    async def _transition(
        self,
        ticket_id: str,
        action: BoardAction,
        resolution: Optional[str] = None,
    ) -> Optional[TechnicianTicket]:
        ticket = self.get(ticket_id)
        source, target = TRANSITIONS[action]
        if ticket is None or ticket.status != source:
            raise InvalidTransitionError(
                internal_message=f"{action.value} not offered for ticket {ticket_id}",
                context={"ticket_id": ticket_id, "status": ticket.status if ticket else None},
            )

        self.loading = True
        try:
            updated = await self.client.update_ticket_status(ticket_id, target, resolution)
        except AuthError as e:
            e.log_error(logger)
            return None
        except TicketDeskError as e:
            e.log_error(logger)
            self.notifications.error(e, prefix="Failed to update ticket")
            return None
        finally:
            self.loading = False

        if updated.status == DisplayStatus.RESOLVED.value and not (updated.resolution or "").strip():
            updated.resolution = resolution or self.config.default_resolution

        self.tickets = [updated if t.id == ticket_id else t for t in self.tickets]
        self.notifications.success(f"Ticket moved to {updated.status}")

        if self.on_update is not None:
            result = self.on_update()
            if inspect.isawaitable(result):
                await result
        await self.bus.publish(TICKET_UPDATED)
        return updated

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def can_post_note(self, content: str) -> bool:
        return self.selected_ticket is not None and bool((content or "").strip()) and not self.loading

    async def post_note(self, content: str) -> bool:
        """
        Add a note to the selected ticket, then re-fetch every ticket of this
        technician and keep the same ticket selected.

        Returns:
            True if the note was accepted
        """
        if not self.can_post_note(content):
            logger.debug("Note submit ignored: no selection or empty content")
            return False

        ticket_id = self.selected_ticket_id
        self.loading = True
        try:
            await self.client.add_note(ticket_id, content)
        except AuthError as e:
            e.log_error(logger)
            return False
        except TicketValidationError as e:
            e.log_error(logger)
            return False
        except TicketDeskError as e:
            e.log_error(logger)
            self.notifications.error(e, prefix="Failed to add note")
            return False
        finally:
            self.loading = False

        self.notifications.success("Note added")
        # replace_tickets keeps `ticket_id` selected if it is still assigned here
        await self.refresh()
        return True
