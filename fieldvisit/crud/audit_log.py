from sqlalchemy.orm import Session
from sqlalchemy import desc
from typing import List, Optional

from fieldvisit.models.audit_log import AuditLog
from fieldvisit.schemas.enums import AuditAction

AUDIT_LOG_LIMIT = 500


def get_audit_logs(db: Session, action: Optional[AuditAction] = None) -> List[dict]:
    """Latest audit entries (capped), optionally for one action"""
    query = db.query(AuditLog)
    if action is not None:
        query = query.filter(AuditLog.action == action)

    entries = query.order_by(desc(AuditLog.created_at), desc(AuditLog.id))\
        .limit(AUDIT_LOG_LIMIT)\
        .all()

    results = []
    for entry in entries:
        results.append({
            "id": entry.id,
            "action": entry.action,
            "performed_by": entry.performed_by,
            "performed_by_name": entry.performed_by_name,
            "target_user_id": entry.target_user_id,
            "metadata": entry.log_metadata,
            "created_at": entry.created_at,
        })
    return results
