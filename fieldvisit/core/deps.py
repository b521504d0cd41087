import logging
from typing import Generator, Optional

from fastapi import Depends, Header
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fieldvisit.core.errors import AuthenticationError, AuthorizationError
from fieldvisit.crud.profile import get_profile_by_id
from fieldvisit.db.session import SessionLocal
from fieldvisit.models.profile import Profile
from fieldvisit.schemas.enums import UserRole
from fieldvisit.services.identity import IdentityService

logger = logging.getLogger(__name__)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: yields a database session, auto-closes on finish."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Profile:
    """
    Resolve the bearer token to an active profile.
    Runs on every protected request; nothing is cached between requests so a
    deactivation takes effect immediately.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError("Missing or invalid authorization header")

    token = authorization[len("Bearer "):].strip()
    if not token:
        raise AuthenticationError("Missing or invalid authorization header")

    try:
        identity = IdentityService(db).verify_access_token(token)
    except SQLAlchemyError:
        logger.exception("Token resolution failed")
        identity = None
    if identity is None:
        raise AuthenticationError("Invalid or expired token")

    profile = get_profile_by_id(db, identity.id)
    if profile is None:
        raise AuthenticationError("User profile not found")

    if not profile.is_active:
        raise AuthorizationError("Account is deactivated")

    return profile


def require_role(role: UserRole):
    """
    Dependency factory for routes restricted to one role.
    Example: Depends(require_role(UserRole.collection_manager))
    """
    def checker(current_user: Profile = Depends(get_current_user)) -> Profile:
        if current_user.role != role:
            raise AuthorizationError("Insufficient permissions")
        return current_user

    return checker


require_field_agent = require_role(UserRole.field_agent)
require_manager = require_role(UserRole.collection_manager)
