import asyncio

import pytest

from ticketdesk.dashboard import TechnicianDashboard
from ticketdesk.services.lifecycle import TICKET_UPDATED


@pytest.fixture
def dashboard(client, bus, fake_sleep, test_settings):
    return TechnicianDashboard(client, "tech-a", bus=bus, sleep=fake_sleep, config=test_settings)


@pytest.fixture
def seeded(backend):
    backend.add_ticket("T1", status="in_progress", assigned_to="tech-a")
    backend.add_ticket("T2", status="working_on", assigned_to="tech-a")
    backend.add_ticket("T3", status="resolved", assigned_to="tech-a")
    return backend


def technician_fetches(backend):
    return len(backend.requests_to("GET", "/tickets/technician/tech-a"))


@pytest.mark.asyncio
@pytest.mark.unit
async def test_mount_fetches_subscribes_and_polls(dashboard, seeded, bus):
    await dashboard.mount()

    assert dashboard.refresh_count == 1
    assert dashboard.stats.in_progress == 1
    assert dashboard.stats.working_on == 1
    assert dashboard.stats.resolved == 1
    assert dashboard.stats.completed_today == 1
    assert bus.subscriber_count(TICKET_UPDATED) == 1
    assert dashboard.polling

    await dashboard.unmount()

    assert bus.subscriber_count(TICKET_UPDATED) == 0
    assert not dashboard.polling


@pytest.mark.asyncio
@pytest.mark.unit
async def test_broadcast_triggers_refetch(dashboard, seeded, bus):
    await dashboard.mount()
    seeded.tickets["T1"]["status"] = "working_on"

    await bus.publish(TICKET_UPDATED)

    assert technician_fetches(seeded) == 2
    assert dashboard.stats.working_on == 2
    await dashboard.unmount()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_poll_interval_triggers_refetch(dashboard, seeded, fake_sleep, wait_until, test_settings):
    await dashboard.mount()
    seeded.add_ticket("T5", status="in_progress", assigned_to="tech-a")

    await fake_sleep.advance()

    assert await wait_until(lambda: dashboard.refresh_count == 2)
    assert dashboard.stats.in_progress == 2
    assert fake_sleep.calls[0] == test_settings.poll_interval_seconds
    await dashboard.unmount()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_no_refresh_after_unmount(dashboard, seeded, bus):
    await dashboard.mount()
    await dashboard.unmount()

    await bus.publish(TICKET_UPDATED)
    await dashboard.refresh()

    assert technician_fetches(seeded) == 1
    assert dashboard.refresh_count == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_result_landing_after_unmount_is_discarded(dashboard, seeded, client, monkeypatch):
    await dashboard.mount()
    original = client.list_technician_tickets
    release = asyncio.Event()

    async def slow_fetch(technician_id):
        await original(technician_id)
        await release.wait()
        return []

    monkeypatch.setattr(client, "list_technician_tickets", slow_fetch)
    in_flight = asyncio.create_task(dashboard.refresh())
    await asyncio.sleep(0.01)

    await dashboard.unmount()
    release.set()
    await in_flight

    assert dashboard.refresh_count == 1
    assert len(dashboard.board.tickets) == 3


@pytest.mark.asyncio
@pytest.mark.unit
async def test_board_transition_updates_stats(dashboard, seeded):
    await dashboard.mount()

    await dashboard.board.start_working("T1")

    assert dashboard.stats.in_progress == 0
    assert dashboard.stats.working_on == 2
    # the dashboard hears its own broadcast and re-fetches
    assert technician_fetches(seeded) == 2
    await dashboard.unmount()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_refresh_failure_keeps_previous_stats(dashboard, seeded):
    await dashboard.mount()
    seeded.fail("GET", "/tickets/technician/tech-a", 503)

    await dashboard.refresh()

    assert dashboard.stats.total_assigned == 3
    assert dashboard.loading is False
    assert dashboard.notifications.latest.level == "error"
    await dashboard.unmount()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unauthorized_poll_unmounts_dashboard(dashboard, seeded, bus, fake_sleep, wait_until, navigator):
    await dashboard.mount()
    seeded.fail("GET", "/tickets/technician/tech-a", 401)

    await fake_sleep.advance()
    assert await wait_until(lambda: not dashboard.polling)

    await fake_sleep.advance()
    await bus.publish(TICKET_UPDATED)

    assert technician_fetches(seeded) == 2
    assert dashboard.mounted is False
    assert bus.subscriber_count(TICKET_UPDATED) == 0
    assert navigator.history == ["/dashboard", "/login"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unauthorized_first_fetch_never_starts_polling(dashboard, seeded, bus):
    seeded.fail("GET", "/tickets/technician/tech-a", 401)

    await dashboard.mount()

    assert dashboard.mounted is False
    assert not dashboard.polling
    assert bus.subscriber_count(TICKET_UPDATED) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_refresh_after_sign_out_makes_no_request(dashboard, seeded, credentials):
    await dashboard.mount()
    credentials.clear()

    await dashboard.refresh()

    assert technician_fetches(seeded) == 1
    assert dashboard.mounted is False
    assert not dashboard.polling
