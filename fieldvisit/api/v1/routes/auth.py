import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fieldvisit.core.deps import get_db
from fieldvisit.core.errors import (
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    DependencyError,
)
from fieldvisit.crud.profile import get_profile_by_id
from fieldvisit.schemas.auth import LoginRequest, LoginResponse, RefreshRequest, TokenPair
from fieldvisit.schemas.user import UserSummary
from fieldvisit.services.identity import IdentityService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """Exchange phone + password for an access/refresh token pair."""
    if not payload.phone or not payload.password:
        raise ValidationError("Phone and password are required")

    try:
        session = IdentityService(db).sign_in(payload.phone, payload.password)
        profile = get_profile_by_id(db, session.identity_id) if session else None
    except SQLAlchemyError:
        logger.exception("Login lookup failed")
        raise DependencyError("Internal server error")

    if session is None:
        raise AuthenticationError("Invalid phone number or password")
    if profile is None:
        raise AuthenticationError("User profile not found")
    if not profile.is_active:
        raise AuthorizationError("Account is deactivated. Please contact your manager.")

    return LoginResponse(
        access_token=session.tokens.access_token,
        refresh_token=session.tokens.refresh_token,
        user=UserSummary.model_validate(profile),
    )


@router.post("/refresh", response_model=TokenPair)
def refresh(payload: RefreshRequest, db: Session = Depends(get_db)):
    """Issue a fresh token pair; refused once the account is banned or deactivated."""
    if not payload.refresh_token:
        raise ValidationError("Refresh token is required")

    try:
        session = IdentityService(db).refresh(payload.refresh_token)
        profile = get_profile_by_id(db, session.identity_id) if session else None
    except SQLAlchemyError:
        logger.exception("Token refresh failed")
        raise DependencyError("Internal server error")

    if session is None or profile is None or not profile.is_active:
        raise AuthenticationError("Invalid refresh token")

    return session.tokens
