import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fieldvisit.core.deps import get_db, require_manager
from fieldvisit.core.errors import ValidationError, DependencyError
from fieldvisit.crud.audit_log import get_audit_logs
from fieldvisit.models.profile import Profile
from fieldvisit.schemas.audit_log import AuditLogList
from fieldvisit.schemas.enums import AuditAction, AUDIT_ACTION_VALUES

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=AuditLogList)
def list_audit_logs(
    action: Optional[str] = Query(None, description="Only entries for this action"),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_manager),
):
    """Latest 500 administrative actions, newest first"""
    action_filter = None
    if action and action.strip():
        if action.strip() not in AUDIT_ACTION_VALUES:
            raise ValidationError(f"Action must be one of: {', '.join(AUDIT_ACTION_VALUES)}")
        action_filter = AuditAction(action.strip())

    try:
        return {"logs": get_audit_logs(db, action=action_filter)}
    except SQLAlchemyError:
        logger.exception("Fetch audit logs failed")
        raise DependencyError("Failed to fetch audit logs")
