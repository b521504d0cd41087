from typing import Optional

from fieldvisit.client.session import SessionContext
from fieldvisit.schemas.enums import UserRole

LOGIN_PATH = "/login"

HOME_PATHS = {
    UserRole.field_agent: "/agent/new-visit",
    UserRole.collection_manager: "/manager/visits",
}


def home_path(role: UserRole) -> str:
    return HOME_PATHS[role]


def landing_path(session: SessionContext) -> str:
    if not session.is_authenticated:
        return LOGIN_PATH
    return home_path(session.user.role)


def guard(session: SessionContext, required_role: UserRole) -> Optional[str]:
    """Redirect target for a role-restricted page, or None when access is allowed."""
    if not session.is_authenticated or session.user.role != required_role:
        return LOGIN_PATH
    return None
