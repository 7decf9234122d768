"""
Assignment Console - dispatcher view

Lists tickets, lets the dispatcher pick a technician and a priority for the
selected ticket, and submits the assignment. Resolved and Closed tickets
cannot be (re)assigned from here; the gate lives in `can_submit` because the
support API is not relied on to enforce it.
"""
import logging
from typing import List, Optional

from ticketdesk.models import AssignTicketData, BackendStatus, Technician, Ticket, TicketPriority
from ticketdesk.security.errors import AuthError, TicketDeskError
from ticketdesk.services.lifecycle import TICKET_UPDATED, LifecycleBus, get_lifecycle_bus
from ticketdesk.services.ticket_directory import STATUS_FILTER_ALL, TicketDirectoryClient
from .notifications import NotificationCenter

logger = logging.getLogger(__name__)

STATUS_FILTER_OPTIONS = (STATUS_FILTER_ALL,) + tuple(status.value for status in BackendStatus)


class AssignmentConsole:
    """
    Dispatcher state: the ticket list, the selected ticket, and the pending
    edits (priority, technician, notes) for that ticket.

    Pending edits belong to the selection. Selecting another ticket always
    discards them.
    """

    def __init__(
        self,
        client: TicketDirectoryClient,
        bus: Optional[LifecycleBus] = None,
        notifications: Optional[NotificationCenter] = None,
        unassigned_only: bool = True,
    ):
        self.client = client
        self.bus = bus or get_lifecycle_bus()
        self.notifications = notifications or NotificationCenter()

        self.tickets: List[Ticket] = []
        self.technicians: List[Technician] = []
        self.roster_degraded = False
        self.status_filter = STATUS_FILTER_ALL
        self.unassigned_only = unassigned_only
        self.loading = False

        self.selected_ticket: Optional[Ticket] = None
        self.priority: Optional[TicketPriority] = None
        self.technician_id: str = ""
        self.notes: str = ""

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Fetch tickets for the current filter and the technician roster."""
        self.loading = True
        try:
            self.tickets = await self.client.list_tickets(self.status_filter)
            roster = await self.client.fetch_technician_roster()
            self.technicians = roster.technicians
            self.roster_degraded = roster.degraded
            if roster.degraded:
                self.notifications.info("Technician directory unavailable, showing the default roster")
        except AuthError as e:
            e.log_error(logger)
        except TicketDeskError as e:
            e.log_error(logger)
            self.notifications.error(e, prefix="Failed to load tickets")
        finally:
            self.loading = False

    async def set_status_filter(self, status_filter: str) -> None:
        """Change the status filter and re-query the ticket list."""
        if status_filter not in STATUS_FILTER_OPTIONS:
            raise ValueError(f"Unknown status filter {status_filter!r}")
        self.status_filter = status_filter
        self.loading = True
        try:
            self.tickets = await self.client.list_tickets(status_filter)
        except AuthError as e:
            e.log_error(logger)
        except TicketDeskError as e:
            e.log_error(logger)
            self.notifications.error(e, prefix="Failed to load tickets")
        finally:
            self.loading = False

    @property
    def visible_tickets(self) -> List[Ticket]:
        if self.unassigned_only:
            return [ticket for ticket in self.tickets if not ticket.assigned]
        return list(self.tickets)

    # ------------------------------------------------------------------
    # Selection and pending edits
    # ------------------------------------------------------------------

    def select_ticket(self, ticket_id: str) -> Ticket:
        """Select a ticket and pre-fill the pending edits from its assignment."""
        ticket = next((t for t in self.tickets if t.id == ticket_id), None)
        if ticket is None:
            raise KeyError(ticket_id)
        self.selected_ticket = ticket
        self.priority = ticket.priority
        self.technician_id = ticket.assigned_to.id if ticket.assigned_to else ""
        self.notes = ""
        return ticket

    def set_priority(self, priority) -> None:
        self.priority = TicketPriority.parse(priority)

    def set_technician(self, technician_id: str) -> None:
        self.technician_id = technician_id or ""

    def set_notes(self, notes: str) -> None:
        self.notes = notes or ""

    @property
    def can_submit(self) -> bool:
        ticket = self.selected_ticket
        return (
            ticket is not None
            and not ticket.is_terminal
            and bool(self.technician_id)
            and self.priority is not None
            and not self.loading
        )

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    async def submit_assignment(self) -> Optional[Ticket]:
        """
        Send the pending assignment for the selected ticket.

        Does nothing (returns None) while `can_submit` is False. On success the
        ticket is replaced in the list and stays selected, so it still shows as
        assigned after dropping out of the unassigned-only view.
        """
        if not self.can_submit:
            logger.debug("Assignment submit ignored: console not ready")
            return None

        ticket = self.selected_ticket
        assignment = AssignTicketData(
            ticket_id=ticket.id,
            technician_id=self.technician_id,
            priority=self.priority,
            notes=self.notes.strip() or None,
        )

        self.loading = True
        try:
            updated = await self.client.assign_ticket(assignment)
        except AuthError as e:
            e.log_error(logger)
            return None
        except TicketDeskError as e:
            e.log_error(logger)
            self.notifications.error(e, prefix="Failed to assign ticket")
            return None
        finally:
            self.loading = False

        self.tickets = [updated if t.id == updated.id else t for t in self.tickets]
        self.selected_ticket = updated
        technician = self._technician_name(updated)
        self.notifications.success(f"Ticket assigned to {technician}")

        await self.bus.publish(TICKET_UPDATED)
        return updated

    def _technician_name(self, ticket: Ticket) -> str:
        if ticket.assigned_to and ticket.assigned_to.name:
            return ticket.assigned_to.name
        match = next((t for t in self.technicians if t.id == self.technician_id), None)
        return match.name if match else self.technician_id
