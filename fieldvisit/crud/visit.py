import math
import re
from datetime import date
from typing import Any, List, Optional

from sqlalchemy import desc, or_
from sqlalchemy.orm import Session

from fieldvisit.core.errors import ValidationError
from fieldvisit.models.profile import Profile
from fieldvisit.models.visit import Visit
from fieldvisit.schemas.enums import VisitStatus, VISIT_STATUS_VALUES
from fieldvisit.schemas.visit import VisitCreate

LOAN_NUMBER_PATTERN = re.compile(r"[0-9]{21}")
MIN_PHOTOS = 1
MAX_PHOTOS = 5
SEARCH_LIMIT = 200


def is_valid_loan_number(value: Any) -> bool:
    return isinstance(value, str) and LOAN_NUMBER_PATTERN.fullmatch(value) is not None


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_visit_payload(payload: VisitCreate) -> dict:
    """
    Check a visit submission rule by rule and return the cleaned column values.

    Fields arrive untyped; a value of the wrong JSON type fails the rule for
    its own field, so the reported error is always the first rule broken.
    PTP fields are only kept for PTP visits.
    """
    if not is_valid_loan_number(payload.loan_number):
        raise ValidationError("Loan number must be exactly 21 digits")

    if _is_blank(payload.person_visited):
        raise ValidationError("Person visited is required")

    if not isinstance(payload.status, str) or payload.status not in VISIT_STATUS_VALUES:
        raise ValidationError(f"Status must be one of: {', '.join(VISIT_STATUS_VALUES)}")
    status = VisitStatus(payload.status)

    if _is_blank(payload.comments):
        raise ValidationError("Comments are required")

    photo_urls = payload.photo_urls
    if not isinstance(photo_urls, list) or not MIN_PHOTOS <= len(photo_urls) <= MAX_PHOTOS:
        raise ValidationError("Between 1 and 5 photos are required")
    if any(_is_blank(url) for url in photo_urls):
        raise ValidationError("Photo URLs must be non-empty strings")

    # Numbers only; coordinates are not range checked
    if not _is_number(payload.latitude) or not _is_number(payload.longitude):
        raise ValidationError("Geolocation is required")

    if _is_blank(payload.address):
        raise ValidationError("Address is required")

    ptp_date = None
    ptp_amount = None
    if status == VisitStatus.ptp:
        if payload.ptp_date is None or (isinstance(payload.ptp_date, str) and not payload.ptp_date.strip()):
            raise ValidationError("PTP date is required for PTP visits")
        try:
            ptp_date = date.fromisoformat(payload.ptp_date.strip())
        except (AttributeError, ValueError):
            raise ValidationError("PTP date must be a valid date (YYYY-MM-DD)")
        if not _is_number(payload.ptp_amount) or not payload.ptp_amount > 0:
            raise ValidationError("PTP amount must be a positive number")
        ptp_amount = float(payload.ptp_amount)

    return {
        "loan_number": payload.loan_number,
        "person_visited": payload.person_visited.strip(),
        "status": status,
        "comments": payload.comments.strip(),
        "photo_urls": [url.strip() for url in photo_urls],
        "latitude": float(payload.latitude),
        "longitude": float(payload.longitude),
        "address": payload.address.strip(),
        "ptp_date": ptp_date,
        "ptp_amount": ptp_amount,
    }


def create_visit(db: Session, payload: VisitCreate, agent: Profile) -> Visit:
    """Validate and append one visit stamped with the agent's current identity"""
    values = validate_visit_payload(payload)

    db_visit = Visit(
        agent_id=agent.id,
        agent_name=agent.name,
        agent_phone=agent.phone,
        **values,
    )
    db.add(db_visit)
    db.commit()
    db.refresh(db_visit)
    return db_visit


def get_my_visits(db: Session, agent_id: str, loan_number: str) -> List[Visit]:
    """The agent's own visits for one loan, newest first"""
    return db.query(Visit)\
        .filter(Visit.agent_id == agent_id, Visit.loan_number == loan_number)\
        .order_by(desc(Visit.visited_at), desc(Visit.id))\
        .all()


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_visits(
    db: Session,
    loan_number: Optional[str] = None,
    agent_query: Optional[str] = None,
) -> List[Visit]:
    """Visits by exact loan number and/or agent name-or-phone substring, newest first (capped)"""
    loan_number = (loan_number or "").strip()
    agent_query = (agent_query or "").strip()
    if not loan_number and not agent_query:
        raise ValidationError("At least one search parameter is required")

    query = db.query(Visit)

    if loan_number:
        query = query.filter(Visit.loan_number == loan_number)

    if agent_query:
        pattern = f"%{_escape_like(agent_query)}%"
        query = query.filter(or_(
            Visit.agent_name.ilike(pattern, escape="\\"),
            Visit.agent_phone.ilike(pattern, escape="\\"),
        ))

    return query.order_by(desc(Visit.visited_at), desc(Visit.id))\
        .limit(SEARCH_LIMIT)\
        .all()
