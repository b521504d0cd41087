"""
Identity gateway: credentials, token issuance and bans.

Profiles live in their own table and are written by a separate step, so the
gateway is deliberately unaware of names, roles or the active flag.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fieldvisit.core import security
from fieldvisit.core.errors import ConflictError
from fieldvisit.models.auth_identity import AuthIdentity
from fieldvisit.schemas.auth import TokenPair

logger = logging.getLogger(__name__)


@dataclass
class AuthSession:
    identity_id: str
    tokens: TokenPair


class IdentityService:
    def __init__(self, db: Session):
        self.db = db

    def get(self, identity_id: str) -> Optional[AuthIdentity]:
        return self.db.query(AuthIdentity).filter(AuthIdentity.id == identity_id).first()

    def create(self, phone: str, password: str) -> AuthIdentity:
        """Register a login. Raises ConflictError when the phone is already taken."""
        login = security.normalize_phone(phone)
        if self.db.query(AuthIdentity).filter(AuthIdentity.login == login).first():
            raise ConflictError("Phone number already in use")

        identity = AuthIdentity(login=login, password_hash=security.get_password_hash(password))
        self.db.add(identity)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent create for the same phone
            self.db.rollback()
            raise ConflictError("Phone number already in use")
        self.db.refresh(identity)
        return identity

    def delete(self, identity_id: str) -> None:
        identity = self.get(identity_id)
        if identity is not None:
            self.db.delete(identity)
            self.db.commit()

    def sign_in(self, phone: str, password: str) -> Optional[AuthSession]:
        """Tokens for valid, unbanned credentials; None otherwise."""
        login = security.normalize_phone(phone)
        identity = self.db.query(AuthIdentity).filter(AuthIdentity.login == login).first()
        if identity is None or not security.verify_password(password, identity.password_hash):
            return None
        if identity.is_banned():
            logger.info("Rejected sign-in for banned identity %s", identity.id)
            return None
        return self._issue(identity)

    def refresh(self, refresh_token: str) -> Optional[AuthSession]:
        identity = self._resolve(refresh_token, security.REFRESH_TOKEN_TYPE)
        if identity is None or identity.is_banned():
            return None
        return self._issue(identity)

    def verify_access_token(self, token: str) -> Optional[AuthIdentity]:
        """Bans only stop new tokens; callers check the profile for deactivation."""
        return self._resolve(token, security.ACCESS_TOKEN_TYPE)

    def ban(self, identity_id: str, hours: int) -> None:
        identity = self.get(identity_id)
        if identity is None:
            raise LookupError(f"Identity {identity_id} not found")
        identity.banned_until = datetime.utcnow() + timedelta(hours=hours)
        self.db.commit()

    def update_password(self, identity_id: str, new_password: str) -> None:
        identity = self.get(identity_id)
        if identity is None:
            raise LookupError(f"Identity {identity_id} not found")
        identity.password_hash = security.get_password_hash(new_password)
        self.db.commit()

    def _resolve(self, token: str, token_type: str) -> Optional[AuthIdentity]:
        identity_id = security.verify_token(token, token_type)
        if identity_id is None:
            return None
        return self.get(identity_id)

    @staticmethod
    def _issue(identity: AuthIdentity) -> AuthSession:
        tokens = TokenPair(
            access_token=security.create_access_token(identity.id),
            refresh_token=security.create_refresh_token(identity.id),
        )
        return AuthSession(identity_id=identity.id, tokens=tokens)
