"""
Ticket directory client

The only component that talks to the support API about tickets. Every call
is a fresh round trip; nothing is cached here. Backend status codes are
translated to display labels on the way in and back to codes on the way out.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Type, TypeVar

from pydantic import ValidationError

from ticketdesk.auth.credentials import CredentialProvider, Navigator, invalidate_session
from ticketdesk.config import Settings, settings
from ticketdesk.models import (
    AssignTicketData,
    BackendStatus,
    TechnicianTicket,
    Technician,
    Ticket,
    TicketCreate,
    to_backend,
    to_display,
)
from ticketdesk.security.errors import (
    AuthError,
    ShapeError,
    TicketDeskError,
    TicketValidationError,
)
from ticketdesk.utils.http_client import HTTPClient

logger = logging.getLogger(__name__)

TicketT = TypeVar("TicketT", bound=Ticket)

STATUS_FILTER_ALL = "all"

# A technician's board shows active work plus recently resolved tickets
TECHNICIAN_BOARD_STATUSES = (
    BackendStatus.OPEN.value,
    BackendStatus.IN_PROGRESS.value,
    BackendStatus.WORKING_ON.value,
    BackendStatus.RESOLVED.value,
)


@dataclass
class TechnicianRoster:
    """Technician lookup result; `degraded` marks the built-in fallback roster"""
    technicians: List[Technician] = field(default_factory=list)
    degraded: bool = False


class TicketDirectoryClient:
    """
    Reads and writes tickets through the support API.

    A 401/403 on any call clears the stored credential and navigates to the
    login route before AuthError is raised. No call is retried.
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        navigator: Optional[Navigator] = None,
        http: Optional[HTTPClient] = None,
        config: Settings = settings,
        **http_kwargs
    ):
        self.credentials = credentials
        self.navigator = navigator
        self.config = config
        if http is None:
            http = HTTPClient(
                config.api_base_url,
                credentials,
                on_unauthorized=self.invalidate_session,
                **http_kwargs
            )
        elif http.on_unauthorized is None:
            http.on_unauthorized = self.invalidate_session
        self.http = http
        self.base_path = "/" + config.support_path.strip("/")

    def invalidate_session(self) -> None:
        invalidate_session(self.credentials, self.navigator, self.config.login_route)

    def _path(self, *parts: str) -> str:
        return "/".join([self.base_path, *parts])

    # ------------------------------------------------------------------
    # Response mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _to_ticket(record: Any, model: Type[TicketT]) -> TicketT:
        if not isinstance(record, dict):
            raise ShapeError(internal_message=f"expected a ticket object, got {type(record).__name__}")
        data = dict(record)
        data["status"] = to_display(data.get("status"))
        try:
            ticket = model.model_validate(data)
        except ValidationError as e:
            raise ShapeError(internal_message=f"invalid ticket record: {e}") from e
        ticket.assigned = ticket.assigned_to is not None
        return ticket

    def _to_ticket_list(self, payload: Any, model: Type[TicketT], source: str) -> List[TicketT]:
        if not isinstance(payload, list):
            logger.warning(f"{source}: expected a list of tickets, got {type(payload).__name__}; using empty list")
            return []
        tickets = []
        for record in payload:
            try:
                tickets.append(self._to_ticket(record, model))
            except ShapeError as e:
                e.log_error(logger)
        return tickets

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_tickets(self, status_filter: Optional[str] = None) -> List[Ticket]:
        """
        List all tickets, optionally narrowed to one backend status code.

        Args:
            status_filter: Backend code, or None/"all" for every ticket
        """
        params = {}
        if status_filter and status_filter != STATUS_FILTER_ALL:
            params["status"] = status_filter
        payload = await self.http.get(self._path("tickets"), params=params)
        return self._to_ticket_list(payload, Ticket, "list_tickets")

    async def get_ticket(self, ticket_id: str) -> TechnicianTicket:
        payload = await self.http.get(self._path("tickets", ticket_id))
        return self._to_ticket(payload, TechnicianTicket)

    async def list_technician_tickets(self, technician_id: str) -> List[TechnicianTicket]:
        """Tickets assigned to a technician, active and resolved."""
        payload = await self.http.get(
            self._path("tickets", "technician", technician_id),
            params={"status": ",".join(TECHNICIAN_BOARD_STATUSES)},
        )
        return self._to_ticket_list(payload, TechnicianTicket, "list_technician_tickets")

    async def fetch_technician_roster(self) -> TechnicianRoster:
        """
        Look up technicians, falling back to the built-in roster when the
        directory service fails. AuthError still propagates: the session is gone.
        """
        try:
            payload = await self.http.get(self._path("technicians"))
        except AuthError:
            raise
        except TicketDeskError as e:
            e.log_error(logger)
            return self._fallback_roster()

        if not isinstance(payload, list):
            logger.warning(f"Technician directory returned {type(payload).__name__}, using fallback roster")
            return self._fallback_roster()
        try:
            technicians = [Technician.model_validate(item) for item in payload]
        except ValidationError as e:
            logger.warning(f"Technician directory returned malformed records, using fallback roster: {e}")
            return self._fallback_roster()
        return TechnicianRoster(technicians=technicians)

    async def list_technicians(self) -> List[Technician]:
        roster = await self.fetch_technician_roster()
        return roster.technicians

    def _fallback_roster(self) -> TechnicianRoster:
        return TechnicianRoster(
            technicians=[Technician.model_validate(item) for item in self.config.fallback_technicians],
            degraded=True,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_ticket(self, ticket: TicketCreate) -> Ticket:
        payload = await self.http.post(self._path("tickets"), json=ticket.to_payload())
        created = self._to_ticket(payload, Ticket)
        logger.info(f"Created ticket {created.id}")
        return created

    async def assign_ticket(self, assignment: AssignTicketData) -> Ticket:
        """
        Assign a technician and priority. The returned ticket is always
        marked assigned, whatever the server echoed.
        """
        payload = await self.http.put(
            self._path("tickets", assignment.ticket_id, "assign"),
            json=assignment.to_payload(),
        )
        ticket = self._to_ticket(payload, Ticket)
        ticket.assigned = True
        if ticket.assigned_to is None:
            ticket.assigned_to = Technician(id=assignment.technician_id)
        logger.info(
            f"Assigned ticket {ticket.id} to technician {assignment.technician_id} "
            f"with priority {assignment.priority.value}"
        )
        return ticket

    async def update_ticket_status(
        self,
        ticket_id: str,
        display_status: str,
        resolution: Optional[str] = None,
    ) -> TechnicianTicket:
        """
        Move a ticket to a new status, given as a display label.

        Raises:
            TicketValidationError: If the label has no backend code (nothing is sent)
        """
        code = to_backend(display_status)
        if code is None:
            raise TicketValidationError(
                internal_message=f"No backend status for label {display_status!r}",
                context={"ticket_id": ticket_id},
            )
        body = {"status": code}
        if resolution is not None:
            body["resolution"] = resolution
        payload = await self.http.put(self._path("tickets", ticket_id), json=body)
        ticket = self._to_ticket(payload, TechnicianTicket)
        logger.info(f"Ticket {ticket_id} moved to {code}")
        return ticket

    async def add_note(self, ticket_id: str, content: str) -> None:
        """
        Append a note. The new note is only visible after re-fetching the ticket.

        Raises:
            TicketValidationError: If content is blank (nothing is sent)
        """
        text = (content or "").strip()
        if not text:
            raise TicketValidationError(
                internal_message="Refusing to post an empty note",
                context={"ticket_id": ticket_id},
            )
        response = await self.http.post(self._path("tickets", ticket_id, "notes"), json={"content": text})
        message = response.get("message") if isinstance(response, dict) else None
        logger.info(f"Note added to ticket {ticket_id}: {message or 'ok'}")

    async def close_ticket(self, ticket_id: str) -> Ticket:
        payload = await self.http.patch(self._path("tickets", ticket_id, "close"))
        return self._to_ticket(payload, Ticket)

    async def reopen_ticket(self, ticket_id: str) -> Ticket:
        """Bring a closed or resolved ticket back to the open queue."""
        payload = await self.http.patch(self._path("tickets", ticket_id, "reopen"))
        ticket = self._to_ticket(payload, Ticket)
        logger.info(f"Reopened ticket {ticket_id}")
        return ticket

    async def aclose(self) -> None:
        await self.http.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
