from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, Float, DECIMAL, Date, DateTime, JSON, Enum

from fieldvisit.db.base import Base
from fieldvisit.schemas.enums import VisitStatus


class Visit(Base):
    """
    One logged field visit. Rows are only ever inserted.

    agent_name / agent_phone are copied from the agent's profile at submission
    time and are not kept in sync with later profile edits.
    """
    __tablename__ = "visits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    loan_number = Column(String(21), nullable=False, index=True)
    agent_id = Column(String(36), nullable=False, index=True)
    agent_name = Column(String(255), nullable=False)
    agent_phone = Column(String(32), nullable=False)
    person_visited = Column(String(255), nullable=False)
    status = Column(Enum(VisitStatus, native_enum=False, length=32,
                         values_callable=lambda e: [m.value for m in e]), nullable=False)
    comments = Column(Text, nullable=False)
    photo_urls = Column(JSON, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    address = Column(Text, nullable=False)
    ptp_date = Column(Date, nullable=True)
    ptp_amount = Column(DECIMAL(12, 2, asdecimal=False), nullable=True)
    visited_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
