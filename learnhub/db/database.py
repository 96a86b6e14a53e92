"""
Database connection and session management for LearnHub.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Create base class for SQLAlchemy models
Base = declarative_base()

IN_MEMORY_SQLITE = ("sqlite://", "sqlite:///:memory:")


def create_db_engine(database_url: str) -> Engine:
    """Create an engine; SQLite gets thread-sharing settings."""
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in IN_MEMORY_SQLITE:
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autoflush=False, bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Initialize the database by creating all tables."""
    from learnhub.db.models import LearningData  # noqa: F401

    # Create all tables
    Base.metadata.create_all(bind=engine)
