"""
SQLAlchemy models for the LearnHub database.
"""

import datetime

from sqlalchemy import Column, String, DateTime, Integer, JSON

from learnhub.db.database import Base


def _utcnow() -> datetime.datetime:
    # Stored naive, always UTC
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


class LearningData(Base):
    """A generated learning plan keyed by the learner's email."""
    __tablename__ = "learning_data"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(320), unique=True, nullable=False, index=True)
    learner_email = Column(String(320), nullable=True)
    profile_summary = Column(JSON, nullable=True)
    learning_path = Column(JSON, nullable=False)
    action_plan = Column(JSON, nullable=True)
    pro_tips = Column(JSON, nullable=True)
    expected_timeline = Column(JSON, nullable=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<LearningData(id={self.id}, email='{self.email}')>"
