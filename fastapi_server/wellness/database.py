"""
Database engine and session management.
"""
import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from wellness.config import DATABASE_URL
from wellness.errors import DataAccessError

logger = logging.getLogger(__name__)

# Use check_same_thread only for SQLite
connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(DATABASE_URL, echo=False, pool_pre_ping=True, connect_args=connect_args)


def create_db_and_tables(bind=None):
    """Create all tables defined in SQLModel metadata."""
    # Import models so metadata is registered
    import wellness.models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


def get_session():
    """Yield a database session."""
    with Session(engine) as session:
        yield session


@contextmanager
def data_access(action: str):
    """Translate SQLAlchemy failures into DataAccessError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Failed to %s: %s", action, e)
        raise DataAccessError(f"Failed to {action}", detail=str(e)) from e
