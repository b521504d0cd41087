from sqlalchemy.orm import Session
from sqlalchemy import desc
from typing import List, Optional

from fieldvisit.models.profile import Profile
from fieldvisit.schemas.enums import UserRole


def get_profile_by_id(db: Session, profile_id: str) -> Optional[Profile]:
    return db.query(Profile).filter(Profile.id == profile_id).first()


def list_profiles(db: Session) -> List[Profile]:
    """All profiles, newest first"""
    return db.query(Profile).order_by(desc(Profile.created_at)).all()


def create_profile(
    db: Session,
    profile_id: str,
    name: str,
    phone: str,
    role: UserRole,
    created_by: Optional[str] = None,
) -> Profile:
    profile = Profile(
        id=profile_id,
        name=name,
        phone=phone,
        role=role,
        is_active=True,
        created_by=created_by,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


def set_profile_active(db: Session, profile: Profile, is_active: bool) -> Profile:
    profile.is_active = is_active
    db.commit()
    db.refresh(profile)
    return profile
