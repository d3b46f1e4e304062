"""
Database configuration and session management
"""
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import DATABASE_URL, DB_BUSY_TIMEOUT
from .exceptions import StoreFailureError

logger = logging.getLogger(__name__)


def make_engine(url: str):
    """Create an engine; SQLite connections get a busy timeout so writers queue up"""
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": DB_BUSY_TIMEOUT}
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


# Create engine
engine = make_engine(DATABASE_URL)

# Session
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


# Dependency
def get_db():
    """Get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """
    Unit of work around a core operation.

    Commits when the block exits normally, rolls back on any exception.
    Store errors leave as StoreFailureError; domain errors propagate as is.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Store failure, transaction rolled back: {e}")
        raise StoreFailureError(str(e)) from e
    except Exception:
        db.rollback()
        raise
