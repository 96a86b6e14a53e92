"""
CRUD operations for the LearnHub database.
"""

import datetime
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from learnhub.db.models import LearningData


def get_learning_data(db: Session, email: str) -> Optional[LearningData]:
    """Get a learning plan row by its key."""
    return db.query(LearningData).filter(LearningData.email == email).first()


def _apply(row: LearningData, data: Dict[str, Any], expires_at: datetime.datetime,
           learner_email: Optional[str]) -> None:
    row.learner_email = learner_email
    row.profile_summary = data.get("profile_summary")
    row.learning_path = data.get("learning_path") or []
    row.action_plan = data.get("action_plan")
    row.pro_tips = data.get("pro_tips")
    row.expected_timeline = data.get("expected_timeline")
    row.expires_at = expires_at


def upsert_learning_data(db: Session, email: str, data: Dict[str, Any],
                         expires_at: datetime.datetime,
                         learner_email: Optional[str] = None) -> LearningData:
    """
    Create the row for ``email`` or overwrite the existing one.

    When another writer inserts the same key first, the insert is rolled back
    and that writer's row is overwritten instead.
    """
    row = get_learning_data(db, email)
    if row is None:
        row = LearningData(email=email)
        db.add(row)
    _apply(row, data, expires_at, learner_email)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        row = get_learning_data(db, email)
        if row is None:
            raise
        _apply(row, data, expires_at, learner_email)
        db.commit()

    db.refresh(row)
    return row


def delete_learning_data(db: Session, email: str) -> bool:
    """Delete a learning plan row; False when there was none."""
    deleted = db.query(LearningData).filter(LearningData.email == email).delete()
    db.commit()
    return bool(deleted)


def delete_expired_learning_data(db: Session, now: datetime.datetime) -> int:
    """Delete every row whose expiry lies before ``now``."""
    deleted = db.query(LearningData).filter(LearningData.expires_at < now).delete()
    db.commit()
    return deleted
