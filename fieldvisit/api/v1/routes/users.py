import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fieldvisit.core.deps import get_db, require_manager
from fieldvisit.core.errors import DependencyError
from fieldvisit.crud.profile import list_profiles
from fieldvisit.models.profile import Profile
from fieldvisit.schemas.user import (
    UserCreate,
    PasswordReset,
    UserEnvelope,
    UserList,
    MessageResponse,
)
from fieldvisit.services.user_admin import UserAdminService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=UserList)
def list_users(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_manager),
):
    """All agent and manager accounts, newest first"""
    try:
        return {"users": list_profiles(db)}
    except SQLAlchemyError:
        logger.exception("Fetch users failed")
        raise DependencyError("Failed to fetch users")


@router.post("", response_model=UserEnvelope, status_code=201)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_manager),
):
    """Create a login and profile; 409 when the phone number is taken."""
    profile = UserAdminService(db).create_user(payload, manager=current_user)
    return {"user": profile}


@router.patch("/{user_id}/deactivate", response_model=MessageResponse)
def deactivate_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_manager),
):
    """Deactivate an account and block further sign-ins. Managers cannot deactivate themselves."""
    UserAdminService(db).deactivate_user(user_id, manager=current_user)
    return {"message": "User deactivated successfully"}


@router.patch("/{user_id}/reset-password", response_model=MessageResponse)
def reset_password(
    user_id: str,
    payload: PasswordReset,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_manager),
):
    UserAdminService(db).reset_password(user_id, payload.new_password, manager=current_user)
    return {"message": "Password reset successfully"}
