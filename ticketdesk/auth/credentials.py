"""
Session credentials

The desk does not authenticate anyone itself. It reads an already issued
bearer token and user record from a credential provider, and clears that
record when the support API reports the session as invalid.
"""
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class SessionUser(BaseModel):
    """Signed-in user as stored by the login flow"""
    id: str
    name: str = ""
    email: str = ""
    role: str = ""
    permissions: Dict[str, bool] = Field(default_factory=dict)
    token: str = ""


class CredentialProvider:
    """Interface for anything that can hand out the current session"""

    def current_user(self) -> Optional[SessionUser]:
        raise NotImplementedError

    @property
    def token(self) -> str:
        user = self.current_user()
        return user.token if user else ""

    def clear(self) -> None:
        raise NotImplementedError


class InMemoryCredentialProvider(CredentialProvider):
    def __init__(self, user: Optional[SessionUser] = None):
        self._user = user

    def current_user(self) -> Optional[SessionUser]:
        return self._user

    def save(self, user: SessionUser) -> None:
        self._user = user

    def clear(self) -> None:
        self._user = None


class FileCredentialProvider(CredentialProvider):
    """
    Session stored as a JSON user record on disk.

    A missing or unreadable file means nobody is signed in.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def current_user(self) -> Optional[SessionUser]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return SessionUser(**data)
        except (OSError, ValueError, TypeError, ValidationError) as e:
            logger.error(f"Failed to read stored session from {self.path}: {e}")
            return None

    def save(self, user: SessionUser) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(user.model_dump_json(), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class Navigator:
    """Tracks which route the desk is showing"""

    def __init__(self, initial_route: str = "/"):
        self.current_route = initial_route
        self.history: List[str] = [initial_route]

    def navigate(self, route: str) -> None:
        logger.info(f"Navigating to {route}")
        self.current_route = route
        self.history.append(route)


def invalidate_session(
    credentials: CredentialProvider,
    navigator: Optional[Navigator],
    login_route: str,
) -> None:
    """Drop the stored credential and send the user back to the login route."""
    logger.warning("Session rejected by the support API, signing out")
    credentials.clear()
    if navigator is not None:
        navigator.navigate(login_route)

