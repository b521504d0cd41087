"""
Create the first collection manager so someone can log in and add agents.

    python scripts/seed_manager.py --phone 9999999999 --password 'Manager@123'
"""
import argparse
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fieldvisit.core.errors import ConflictError
from fieldvisit.crud.profile import create_profile
from fieldvisit.db.session import SessionLocal, init_db
from fieldvisit.schemas.enums import UserRole
from fieldvisit.services.identity import IdentityService


LOGGER = logging.getLogger("seed_manager")


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


@contextmanager
def db_session() -> Iterator[Session]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def seed_manager(db: Session, name: str, phone: str, password: str) -> bool:
    """Returns False when the phone is already registered."""
    identity_service = IdentityService(db)
    try:
        identity = identity_service.create(phone, password)
    except ConflictError:
        LOGGER.warning("Auth user for %s already exists, skipping", phone)
        return False

    try:
        create_profile(db, profile_id=identity.id, name=name, phone=phone, role=UserRole.collection_manager)
    except SQLAlchemyError:
        db.rollback()
        identity_service.delete(identity.id)
        raise
    return True


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the initial collection manager account.")
    parser.add_argument("--name", default="Admin Manager")
    parser.add_argument("--phone", default="9999999999")
    parser.add_argument("--password", default="Manager@123")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    init_db()
    with db_session() as db:
        try:
            created = seed_manager(db, args.name, args.phone, args.password)
        except SQLAlchemyError:
            LOGGER.exception("Failed to create manager profile")
            return 1

    if created:
        LOGGER.info("Initial collection manager created (phone %s)", args.phone)
        LOGGER.warning("Change this password immediately after first login")
    return 0


if __name__ == "__main__":
    sys.exit(main())
