from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from fieldvisit.core.config import settings
from fieldvisit.db.base import Base

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False  # Required for SQLite

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=connect_args,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None):
    """Create all tables. Called once at application startup."""
    import fieldvisit.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
