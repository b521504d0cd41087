from pydantic import BaseModel
from datetime import datetime
from typing import Optional, Dict, Any, List

from fieldvisit.schemas.enums import AuditAction


class AuditLogEntry(BaseModel):
    id: int
    action: AuditAction
    performed_by: str
    performed_by_name: str
    target_user_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime


class AuditLogList(BaseModel):
    logs: List[AuditLogEntry]
