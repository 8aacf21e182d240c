"""SQLAlchemy models."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, DateTime, String

from .database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ParticipantModel(Base):
    __tablename__ = "participants"

    id = Column(String, primary_key=True, default=lambda: uuid4().hex)
    session_code = Column(String, index=True, nullable=False)
    name = Column(String, nullable=True)
    generation = Column(String, nullable=True)
    email = Column(String, nullable=True)
    department = Column(String, nullable=True)
    responses = Column(JSON, default=dict, nullable=False)
    preference_scores = Column(JSON, nullable=True)
    completed = Column(Boolean, default=False, nullable=False)
    joined_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    last_activity = Column(DateTime(timezone=True), default=utcnow, nullable=False)
