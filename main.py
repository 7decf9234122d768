"""
Headless technician dashboard for the ticket desk

Loads the stored session, mounts a technician dashboard and logs its stats
every time it refreshes (poll interval or lifecycle broadcast).

Usage:
    python main.py
    python main.py --technician 64f0c2 --interval 10
"""
import argparse
import asyncio
import logging

from ticketdesk.auth import FileCredentialProvider, Navigator
from ticketdesk.config import settings
from ticketdesk.dashboard import TechnicianDashboard
from ticketdesk.services import TicketDirectoryClient, get_lifecycle_bus
from ticketdesk.utils.secure_logging import configure_secure_logging

# Configure secure logging (masks tokens and customer PII automatically)
configure_secure_logging(settings.log_level, settings.log_format)

logger = logging.getLogger("ticketdesk")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Watch a technician's tickets")
    parser.add_argument("--technician", help="Technician id (defaults to the signed-in user)")
    parser.add_argument("--interval", type=float, default=settings.poll_interval_seconds,
                        help="Poll interval in seconds")
    parser.add_argument("--credentials", default=settings.credentials_file,
                        help="Path to the stored session record")
    return parser.parse_args()


async def run(args: argparse.Namespace) -> int:
    credentials = FileCredentialProvider(args.credentials)
    navigator = Navigator()
    user = credentials.current_user()
    if user is None:
        logger.error(f"No stored session at {credentials.path}; sign in first")
        return 1

    technician_id = args.technician or user.id
    async with TicketDirectoryClient(credentials, navigator) as client:
        dashboard = TechnicianDashboard(
            client,
            technician_id,
            bus=get_lifecycle_bus(),
            poll_interval=args.interval,
        )
        await dashboard.mount()
        logger.info(f"Watching tickets for technician {technician_id} as {user.name or user.id}")
        seen = -1
        try:
            while navigator.current_route != settings.login_route:
                if dashboard.refresh_count != seen:
                    seen = dashboard.refresh_count
                    stats = dashboard.stats
                    lanes = {lane: len(tickets) for lane, tickets in dashboard.board.lanes().items()}
                    logger.info(
                        f"Assigned {stats.total_assigned} | pending {stats.pending} | "
                        f"in progress {stats.in_progress} | working on {stats.working_on} | "
                        f"completed today {stats.completed_today} | lanes {lanes}"
                    )
                await asyncio.sleep(1)
        finally:
            await dashboard.unmount()

    logger.warning("Session ended; sign in again to continue")
    return 2


if __name__ == "__main__":
    try:
        raise SystemExit(asyncio.run(run(parse_args())))
    except KeyboardInterrupt:
        logger.info("Stopped")
