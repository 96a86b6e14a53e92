"""
Storage backends for generated learning plans.

``SQLPlanStore`` is the durable store; ``MemoryPlanStore`` is the degraded
fallback used when no database is configured or reachable. Both expire
records lazily on read and in bulk through ``sweep``.
"""

import datetime
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from retry import retry
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from learnhub.config import config
from learnhub.db import crud
from learnhub.db.database import create_db_engine, create_session_factory, init_db
from learnhub.db.models import LearningData
from learnhub.models.schemas import LearningPlanRecord
from learnhub.utils.helpers import is_plausible_email
from learnhub.utils.logger import logging


def _to_datetime(epoch: float) -> datetime.datetime:
    return datetime.datetime.fromtimestamp(epoch, tz=datetime.timezone.utc)


def _naive_utc(epoch: float) -> datetime.datetime:
    return _to_datetime(epoch).replace(tzinfo=None)


def _to_epoch(value: datetime.datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=datetime.timezone.utc)
    return value.timestamp()


class PlanStore:
    """Interface for learning plan storage."""

    backend = "base"

    def get(self, key: str) -> Optional[LearningPlanRecord]:
        raise NotImplementedError

    def set(self, key: str, record: LearningPlanRecord, ttl_seconds: int) -> LearningPlanRecord:
        raise NotImplementedError

    def delete(self, key: str) -> bool:
        raise NotImplementedError

    def sweep(self) -> int:
        raise NotImplementedError


class MemoryPlanStore(PlanStore):
    """Process-local plan store."""

    backend = "memory"

    def __init__(self, clock: Callable[[], float] = time.time):
        self._records: Dict[str, Tuple[LearningPlanRecord, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Optional[LearningPlanRecord]:
        with self._lock:
            entry = self._records.get(key)
            if entry is None:
                return None

            record, expires_at = entry
            if self._clock() > expires_at:
                del self._records[key]
                logging.info(f"Learning data expired: {key}")
                return None

            return record

    def set(self, key: str, record: LearningPlanRecord, ttl_seconds: int) -> LearningPlanRecord:
        expires_at = self._clock() + ttl_seconds
        stored = record.model_copy(update={"expires_at": _to_datetime(expires_at)})
        with self._lock:
            self._records[key] = (stored, expires_at)
        return stored

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._records.pop(key, None) is not None

    def sweep(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, (_, expires_at) in self._records.items() if now > expires_at]
            for key in expired:
                del self._records[key]
        return len(expired)


class SQLPlanStore(PlanStore):
    """Plan store backed by any SQLAlchemy database."""

    backend = "sql"

    def __init__(self, session_factory: sessionmaker, clock: Callable[[], float] = time.time):
        self.session_factory = session_factory
        self._clock = clock

    def get(self, key: str) -> Optional[LearningPlanRecord]:
        with self.session_factory() as db:
            row = crud.get_learning_data(db, key)
            if row is None:
                return None

            if self._clock() > _to_epoch(row.expires_at):
                crud.delete_learning_data(db, key)
                logging.info(f"Learning data expired in DB: {key}")
                return None

            return _row_to_record(row)

    def set(self, key: str, record: LearningPlanRecord, ttl_seconds: int) -> LearningPlanRecord:
        expires_at = self._clock() + ttl_seconds
        data = record.model_dump(mode="json", exclude={"email", "expires_at"})
        with self.session_factory() as db:
            row = crud.upsert_learning_data(
                db, key, data, _naive_utc(expires_at), learner_email=record.email
            )
            logging.info(f"Learning data stored in DB for {key} (row {row.id})")
            return _row_to_record(row)

    def delete(self, key: str) -> bool:
        with self.session_factory() as db:
            return crud.delete_learning_data(db, key)

    def sweep(self) -> int:
        with self.session_factory() as db:
            return crud.delete_expired_learning_data(db, _naive_utc(self._clock()))


def _row_to_record(row: LearningData) -> LearningPlanRecord:
    # Synthetic keys are not emails
    email = row.learner_email or (row.email if is_plausible_email(row.email) else None)
    return LearningPlanRecord.model_validate({
        "email": email,
        "profile_summary": row.profile_summary or {},
        "learning_path": row.learning_path or [],
        "action_plan": row.action_plan,
        "pro_tips": row.pro_tips or [],
        "expected_timeline": row.expected_timeline,
        "expires_at": row.expires_at.replace(tzinfo=datetime.timezone.utc),
    })


@retry(SQLAlchemyError,
       tries=config.DB_INIT_RETRIES,
       delay=config.DB_INIT_RETRY_DELAY,
       backoff=config.DB_INIT_BACKOFF,
       logger=logging)
def connect_database(database_url: str) -> Engine:
    """Create the engine and tables, retrying while the database starts up."""
    engine = create_db_engine(database_url)
    init_db(engine)
    return engine


def build_plan_store(database_url: Optional[str] = None) -> PlanStore:
    """
    Set up plan storage.

    Args:
        database_url: SQLAlchemy URL; empty selects the memory store

    Returns:
        A SQL store when the database can be initialized, else a memory store
    """
    if not database_url:
        logging.info("DATABASE_URL not set, storing learning data in memory")
        return MemoryPlanStore()

    try:
        engine = connect_database(database_url)
    except SQLAlchemyError as e:
        logging.error(f"Database initialization failed, storing learning data in memory: {e}")
        return MemoryPlanStore()

    logging.info("Learning data store connected to database")
    return SQLPlanStore(create_session_factory(engine))
