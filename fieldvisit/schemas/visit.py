from pydantic import BaseModel
from datetime import datetime, date
from typing import Any, Optional, List

from fieldvisit.schemas.enums import VisitStatus


class VisitCreate(BaseModel):
    # Untyped on purpose: type and value rules are checked in order by
    # fieldvisit.crud.visit.validate_visit_payload
    loan_number: Optional[Any] = None
    person_visited: Optional[Any] = None
    status: Optional[Any] = None
    comments: Optional[Any] = None
    photo_urls: Optional[Any] = None
    latitude: Optional[Any] = None
    longitude: Optional[Any] = None
    address: Optional[Any] = None
    ptp_date: Optional[Any] = None
    ptp_amount: Optional[Any] = None


class VisitResponse(BaseModel):
    id: int
    loan_number: str
    agent_id: str
    agent_name: str
    agent_phone: str
    person_visited: str
    status: VisitStatus
    comments: str
    photo_urls: List[str]
    latitude: float
    longitude: float
    address: str
    ptp_date: Optional[date] = None
    ptp_amount: Optional[float] = None
    visited_at: datetime

    class Config:
        from_attributes = True


class VisitEnvelope(BaseModel):
    visit: VisitResponse


class VisitList(BaseModel):
    visits: List[VisitResponse]
