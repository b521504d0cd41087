import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fieldvisit.core.deps import get_db, require_field_agent, require_manager
from fieldvisit.core.errors import ValidationError, DependencyError
from fieldvisit.crud.visit import create_visit, get_my_visits, search_visits, is_valid_loan_number
from fieldvisit.models.profile import Profile
from fieldvisit.schemas.visit import VisitCreate, VisitEnvelope, VisitList

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=VisitEnvelope, status_code=201)
def submit_visit(
    payload: VisitCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_field_agent),
):
    """
    Record a field visit for a loan.
    Visits are append-only: submitting again for the same loan adds another row.
    Agent identity is taken from the logged-in user, never from the payload.
    """
    try:
        visit = create_visit(db=db, payload=payload, agent=current_user)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Visit insert failed for agent %s", current_user.id)
        raise DependencyError("Failed to save visit")
    return {"visit": visit}


@router.get("/my", response_model=VisitList)
def list_my_visits(
    loan_number: Optional[str] = Query(None, description="21-digit loan number"),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_field_agent),
):
    """The caller's own visits for one loan, newest first"""
    if not is_valid_loan_number(loan_number):
        raise ValidationError("Valid 21-digit loan number is required")
    try:
        visits = get_my_visits(db=db, agent_id=current_user.id, loan_number=loan_number)
    except SQLAlchemyError:
        logger.exception("Fetch visits failed")
        raise DependencyError("Failed to fetch visits")
    return {"visits": visits}


@router.get("/search", response_model=VisitList)
def search(
    loan_number: Optional[str] = Query(None, description="Exact loan number"),
    agent_query: Optional[str] = Query(None, description="Part of an agent's name or phone"),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_manager),
):
    """
    Search all visits. At least one of:
    - loan_number (exact match)
    - agent_query (case-insensitive match on agent name or phone)
    Returns at most 200 visits, newest first.
    """
    try:
        visits = search_visits(db=db, loan_number=loan_number, agent_query=agent_query)
    except SQLAlchemyError:
        logger.exception("Visit search failed")
        raise DependencyError("Failed to search visits")
    return {"visits": visits}
