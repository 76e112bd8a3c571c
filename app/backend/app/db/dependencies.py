"""Database dependencies for FastAPI endpoints."""

from collections.abc import Generator

from sqlalchemy.orm import Session

from app.db.session import SessionLocal


def get_db_session() -> Generator[Session, None, None]:
    """Yield a read-only SQLAlchemy session.

    Statistics requests never write, so the transaction is always rolled back.
    """

    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
