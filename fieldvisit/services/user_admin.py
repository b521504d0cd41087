"""
User administration: create, deactivate and reset-password for profiles.

Identities and profiles are written separately, so creating a user is a
two-phase operation with an explicit undo of the first phase.
"""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fieldvisit.core.config import settings
from fieldvisit.core.errors import ValidationError, NotFoundError, DependencyError
from fieldvisit.crud.profile import create_profile, get_profile_by_id, set_profile_active
from fieldvisit.models.profile import Profile
from fieldvisit.schemas.enums import AuditAction, UserRole, USER_ROLE_VALUES
from fieldvisit.schemas.user import UserCreate
from fieldvisit.services.audit_service import AuditService
from fieldvisit.services.identity import IdentityService

logger = logging.getLogger(__name__)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _check_password(password: Optional[str], message: str) -> None:
    if password is None or len(password) < settings.PASSWORD_MIN_LENGTH:
        raise ValidationError(message)


class UserAdminService:
    def __init__(self, db: Session, identity: Optional[IdentityService] = None):
        self.db = db
        self.identity = identity or IdentityService(db)

    def create_user(self, data: UserCreate, manager: Profile) -> Profile:
        if _is_blank(data.name):
            raise ValidationError("Name is required")
        if _is_blank(data.phone):
            raise ValidationError("Phone number is required")
        _check_password(data.password, "Password must be at least 6 characters")
        if data.role not in USER_ROLE_VALUES:
            raise ValidationError("Role must be field_agent or collection_manager")

        name = data.name.strip()
        phone = data.phone.strip()

        # Phase 1: identity (ConflictError propagates for a taken phone)
        try:
            identity = self.identity.create(phone, data.password)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Identity creation failed for new user")
            raise DependencyError("Failed to create auth user")

        # Phase 2: profile, undoing phase 1 on failure
        try:
            profile = create_profile(
                self.db,
                profile_id=identity.id,
                name=name,
                phone=phone,
                role=UserRole(data.role),
                created_by=manager.id,
            )
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Profile insert failed for identity %s; rolling back", identity.id)
            self._undo_identity(identity.id)
            raise DependencyError("Failed to create user profile")

        AuditService.log(
            self.db,
            AuditAction.user_created,
            actor=manager,
            target_user_id=profile.id,
            metadata={"name": profile.name, "phone": profile.phone, "role": profile.role.value},
        )
        return profile

    def _undo_identity(self, identity_id: str) -> None:
        try:
            self.identity.delete(identity_id)
        except SQLAlchemyError:
            self.db.rollback()
            logger.error("Could not roll back identity %s; it is now orphaned", identity_id)

    def deactivate_user(self, user_id: str, manager: Profile) -> Profile:
        if user_id == manager.id:
            raise ValidationError("You cannot deactivate your own account")

        target = get_profile_by_id(self.db, user_id)
        if target is None:
            raise NotFoundError("User not found")
        if not target.is_active:
            raise ValidationError("User is already deactivated")

        try:
            set_profile_active(self.db, target, False)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to deactivate profile %s", user_id)
            raise DependencyError("Failed to deactivate user")

        # Stops new sign-ins and refreshes at the gateway
        try:
            self.identity.ban(user_id, settings.BAN_DURATION_HOURS)
        except (SQLAlchemyError, LookupError):
            self.db.rollback()
            logger.exception("Failed to ban identity %s after deactivation", user_id)

        AuditService.log(
            self.db,
            AuditAction.user_deactivated,
            actor=manager,
            target_user_id=user_id,
            metadata={"name": target.name, "phone": target.phone},
        )
        return target

    def reset_password(self, user_id: str, new_password: Optional[str], manager: Profile) -> None:
        _check_password(new_password, "New password must be at least 6 characters")

        target = get_profile_by_id(self.db, user_id)
        if target is None:
            raise NotFoundError("User not found")

        try:
            self.identity.update_password(user_id, new_password)
        except (SQLAlchemyError, LookupError):
            self.db.rollback()
            logger.exception("Password reset failed for %s", user_id)
            raise DependencyError("Failed to reset password")

        AuditService.log(
            self.db,
            AuditAction.password_reset,
            actor=manager,
            target_user_id=user_id,
            metadata={"name": target.name, "phone": target.phone},
        )
