from pydantic import BaseModel
from typing import Optional

from fieldvisit.schemas.user import UserSummary


class LoginRequest(BaseModel):
    phone: Optional[str] = None
    password: Optional[str] = None


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str


class LoginResponse(TokenPair):
    user: UserSummary
