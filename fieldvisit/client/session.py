"""
Client session context.

The session is an explicit object handed to whatever needs it; the store only
knows how to load, save and clear it on disk.
"""
import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

from fieldvisit.schemas.enums import UserRole

logger = logging.getLogger(__name__)


@dataclass
class SessionUser:
    id: str
    name: str
    phone: str
    role: UserRole


@dataclass
class SessionContext:
    user: Optional[SessionUser] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and bool(self.access_token)

    def sign_in(self, user: SessionUser, access_token: str, refresh_token: str) -> None:
        self.user = user
        self.access_token = access_token
        self.refresh_token = refresh_token

    def update_tokens(self, access_token: str, refresh_token: str) -> None:
        self.access_token = access_token
        self.refresh_token = refresh_token

    def sign_out(self) -> None:
        self.user = None
        self.access_token = None
        self.refresh_token = None


class SessionStore:
    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> SessionContext:
        """Restore a saved session; unreadable data yields (and leaves) an empty one."""
        if not self.path.exists():
            return SessionContext()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            user = data.get("user")
            return SessionContext(
                user=SessionUser(
                    id=user["id"],
                    name=user["name"],
                    phone=user["phone"],
                    role=UserRole(user["role"]),
                ) if user else None,
                access_token=data.get("access_token"),
                refresh_token=data.get("refresh_token"),
            )
        except (OSError, ValueError, KeyError, TypeError):
            logger.warning("Discarding unreadable session file %s", self.path)
            self.clear()
            return SessionContext()

    def save(self, session: SessionContext) -> None:
        data = asdict(session)
        if session.user is not None:
            data["user"]["role"] = session.user.role.value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
