"""PostgreSQL connection and session management."""

import logging
from collections.abc import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from livo.core.config import settings
from livo.core.errors import ConflictError, StorageError

logger = logging.getLogger(__name__)

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.DEBUG,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False


def safe_commit(db: Session, conflict: ConflictError | None = None) -> None:
    """
    Commit the session, rolling back on failure.

    Integrity violations become `conflict` when given (e.g. a unique username
    inserted concurrently); any other database failure becomes StorageError.
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if conflict is not None:
            raise conflict from e
        logger.error("Commit failed on integrity error: %s", e.orig)
        raise StorageError(detail=str(e.orig)) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Commit failed: %s", e)
        raise StorageError(detail=str(e)) from e
