import asyncio
import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio

from ticketdesk.auth import InMemoryCredentialProvider, Navigator, SessionUser
from ticketdesk.config import Settings
from ticketdesk.services import LifecycleBus, TicketDirectoryClient

BASE_URL = "http://testserver/api"
SUPPORT_PREFIX = "/api/support"
VALID_TOKEN = "test-token"


def _iso(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


class FakeSupportBackend:
    """In-memory support API, served to httpx through MockTransport."""

    def __init__(self) -> None:
        self.tickets: Dict[str, Dict[str, Any]] = {}
        self.technicians: List[Dict[str, str]] = [
            {"_id": "tech-a", "name": "Tech A"},
            {"_id": "tech-b", "name": "Tech B"},
        ]
        self.requests: List[httpx.Request] = []
        self.failures: Dict[Tuple[str, str], int] = {}
        self.overrides: Dict[Tuple[str, str], Any] = {}
        self.now = datetime.now(timezone.utc)
        self.note_author = "Tech A"
        self._next_id = 100

    # -- setup helpers -------------------------------------------------

    def add_ticket(self, ticket_id: str, **fields: Any) -> Dict[str, Any]:
        record = {
            "_id": ticket_id,
            "title": f"Ticket {ticket_id}",
            "description": "Printer in the admin block is not turning on.",
            "category": "Hardware",
            "attachments": [],
            "priority": None,
            "status": "open",
            "createdAt": _iso(self.now),
            "updatedAt": _iso(self.now),
            "customerName": "Dana Customer",
            "customerEmail": "dana@example.com",
            "location": "Building A",
            "notes": [],
        }
        technician_id = fields.pop("assigned_to", None)
        if technician_id:
            record["assignedTo"] = self._technician(technician_id)
        record.update(fields)
        self.tickets[ticket_id] = record
        return record

    def fail(self, method: str, path: str, status_code: int) -> None:
        self.failures[(method, path)] = status_code

    def respond(self, method: str, path: str, payload: Any) -> None:
        self.overrides[(method, path)] = payload

    def requests_to(self, method: str, path: str) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path == SUPPORT_PREFIX + path
        ]

    # -- transport -----------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if not path.startswith(SUPPORT_PREFIX):
            return httpx.Response(404, json={"message": "Not found"})
        path = path[len(SUPPORT_PREFIX):]
        key = (request.method, path)

        if request.headers.get("Authorization") != f"Bearer {VALID_TOKEN}":
            return httpx.Response(401, json={"message": "Not authorized"})
        if key in self.failures:
            return httpx.Response(self.failures[key], json={"message": "Failure"})
        if key in self.overrides:
            return httpx.Response(200, json=self.overrides[key])

        body = json.loads(request.content) if request.content else {}
        return self._route(request, path, body)

    def _route(self, request: httpx.Request, path: str, body: Dict[str, Any]) -> httpx.Response:
        method = request.method
        status_param = request.url.params.get("status")

        if method == "GET" and path == "/technicians":
            return httpx.Response(200, json=self.technicians)

        if path == "/tickets":
            if method == "GET":
                tickets = list(self.tickets.values())
                if status_param:
                    tickets = [t for t in tickets if t["status"] == status_param]
                return httpx.Response(200, json=tickets)
            if method == "POST":
                self._next_id += 1
                ticket_id = f"T-{self._next_id}"
                record = self.add_ticket(ticket_id, **body)
                return httpx.Response(201, json=record)

        match = re.fullmatch(r"/tickets/technician/([^/]+)", path)
        if match and method == "GET":
            statuses = status_param.split(",") if status_param else None
            tickets = [
                t for t in self.tickets.values()
                if (t.get("assignedTo") or {}).get("_id") == match.group(1)
                and (statuses is None or t["status"] in statuses)
            ]
            return httpx.Response(200, json=tickets)

        match = re.fullmatch(r"/tickets/([^/]+)(?:/(assign|notes|close|reopen))?", path)
        if match:
            ticket = self.tickets.get(match.group(1))
            if ticket is None:
                return httpx.Response(404, json={"message": "Ticket not found"})
            action = match.group(2)

            if method == "GET" and action is None:
                return httpx.Response(200, json=ticket)
            if method == "PUT" and action == "assign":
                ticket["assignedTo"] = self._technician(body["technicianId"])
                ticket["priority"] = body["priority"]
                if body.get("notes"):
                    ticket["assignmentNotes"] = body["notes"]
                return httpx.Response(200, json=self._touch(ticket))
            if method == "PUT" and action is None:
                ticket["status"] = body["status"]
                if "resolution" in body:
                    ticket["resolution"] = body["resolution"]
                return httpx.Response(200, json=self._touch(ticket))
            if method == "POST" and action == "notes":
                ticket["notes"].append({
                    "content": body["content"],
                    "createdBy": {"name": self.note_author},
                    "createdAt": _iso(self.now),
                })
                self._touch(ticket)
                return httpx.Response(201, json={"message": "Note added successfully"})
            if method == "PATCH" and action == "close":
                ticket["status"] = "closed"
                return httpx.Response(200, json=self._touch(ticket))
            if method == "PATCH" and action == "reopen":
                ticket["status"] = "open"
                ticket.pop("resolution", None)
                return httpx.Response(200, json=self._touch(ticket))

        return httpx.Response(405, json={"message": "Method not allowed"})

    def _technician(self, technician_id: str) -> Dict[str, str]:
        match = next((t for t in self.technicians if t["_id"] == technician_id), None)
        return dict(match) if match else {"_id": technician_id, "name": ""}

    def _touch(self, ticket: Dict[str, Any]) -> Dict[str, Any]:
        ticket["updatedAt"] = _iso(self.now)
        return ticket


class FakeSleep:
    """Manual clock for Poller: each sleep() waits until advance() is called."""

    def __init__(self) -> None:
        self.calls: List[float] = []
        self._waiters: List[asyncio.Future] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        future = asyncio.get_running_loop().create_future()
        self._waiters.append(future)
        await future

    async def advance(self) -> None:
        for _ in range(100):
            if self._waiters:
                break
            await asyncio.sleep(0)
        waiters, self._waiters = self._waiters, []
        for future in waiters:
            if not future.done():
                future.set_result(None)


async def _wait_until(predicate, timeout: float = 1.0) -> bool:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            return False
        await asyncio.sleep(0.005)
    return True


@pytest.fixture
def backend() -> FakeSupportBackend:
    return FakeSupportBackend()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        api_base_url=BASE_URL,
        support_path="/support",
        poll_interval_seconds=30.0,
        login_route="/login",
        default_resolution="Issue resolved by technician.",
    )


@pytest.fixture
def session_user() -> SessionUser:
    return SessionUser(
        id="tech-a",
        name="Tech A",
        email="tech.a@example.com",
        role="technician",
        token=VALID_TOKEN,
    )


@pytest.fixture
def credentials(session_user) -> InMemoryCredentialProvider:
    return InMemoryCredentialProvider(session_user)


@pytest.fixture
def navigator() -> Navigator:
    return Navigator(initial_route="/dashboard")


@pytest_asyncio.fixture
async def client(backend, credentials, navigator, test_settings):
    directory = TicketDirectoryClient(
        credentials,
        navigator,
        config=test_settings,
        transport=httpx.MockTransport(backend.handler),
    )
    yield directory
    await directory.aclose()


@pytest.fixture
def bus() -> LifecycleBus:
    return LifecycleBus()


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def wait_until():
    return _wait_until
