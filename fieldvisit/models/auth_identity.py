import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime

from fieldvisit.db.base import Base


class AuthIdentity(Base):
    """Credential record behind the identity gateway; never exposed over the API."""
    __tablename__ = "auth_identities"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    login = Column(String(32), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    banned_until = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def is_banned(self, now: datetime = None) -> bool:
        if self.banned_until is None:
            return False
        return self.banned_until > (now or datetime.utcnow())
