from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, JSON, Enum

from fieldvisit.db.base import Base
from fieldvisit.schemas.enums import AuditAction


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(Enum(AuditAction, native_enum=False, length=32,
                         values_callable=lambda e: [m.value for m in e]), nullable=False, index=True)

    # Actor snapshot at the time of the action
    performed_by = Column(String(36), nullable=False)
    performed_by_name = Column(String(255), nullable=False)

    target_user_id = Column(String(36), nullable=True)
    log_metadata = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
