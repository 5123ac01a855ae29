"""Database dependencies for FastAPI endpoints."""

from sqlalchemy.orm import Session, sessionmaker

from costing.db.session import SessionLocal


def get_session_factory() -> sessionmaker[Session]:
    """Return the session factory used by concurrent snapshot loads."""

    return SessionLocal
