"""
Append-only trail of administrative actions.
"""
import logging
from typing import Optional, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fieldvisit.models.audit_log import AuditLog
from fieldvisit.models.profile import Profile
from fieldvisit.schemas.enums import AuditAction

logger = logging.getLogger(__name__)


class AuditService:
    """Writes audit entries without ever failing the caller."""

    @staticmethod
    def log(
        db: Session,
        action: AuditAction,
        actor: Profile,
        target_user_id: Optional[str] = None,
        metadata: Optional[Dict] = None,
    ) -> Optional[AuditLog]:
        """Record an administrative action.

        Args:
            db: Database session.
            action: What was done.
            actor: The manager who did it; name is copied onto the entry.
            target_user_id: Profile the action applied to.
            metadata: Free-form details of the action.

        Returns:
            The created AuditLog entry, or None if it could not be written.
        """
        entry = AuditLog(
            action=action,
            performed_by=actor.id,
            performed_by_name=actor.name,
            target_user_id=target_user_id,
            log_metadata=metadata or {},
        )
        try:
            db.add(entry)
            db.commit()
            db.refresh(entry)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to write %s audit entry for target %s", action.value, target_user_id)
            return None
        return entry
