from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List

from fieldvisit.schemas.enums import UserRole


class UserCreate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None


class PasswordReset(BaseModel):
    new_password: Optional[str] = None


class UserSummary(BaseModel):
    id: str
    name: str
    phone: str
    role: UserRole

    class Config:
        from_attributes = True


class UserResponse(UserSummary):
    is_active: bool
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None

    class Config:
        from_attributes = True


class UserEnvelope(BaseModel):
    user: UserResponse


class UserList(BaseModel):
    users: List[UserResponse]


class MessageResponse(BaseModel):
    message: str
