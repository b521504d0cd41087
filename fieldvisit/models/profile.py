from datetime import datetime

from sqlalchemy import Column, String, Boolean, DateTime, Enum, ForeignKey

from fieldvisit.db.base import Base
from fieldvisit.schemas.enums import UserRole


class Profile(Base):
    __tablename__ = "profiles"

    # Same id as the identity in auth_identities
    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=False, index=True)
    role = Column(Enum(UserRole, native_enum=False, length=32), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    # Lookup only: the manager who created this account
    created_by = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
