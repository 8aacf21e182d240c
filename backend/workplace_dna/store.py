"""Participant repository backed by SQLAlchemy."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from sqlalchemy import select

from .database import SessionLocal
from .models import ParticipantModel
from .schemas import (
    AnalyticsSnapshot,
    ParticipantJoinRequest,
    ParticipantResponse,
    PreferenceScores,
)

SCORE_DIMENSIONS = ("collaboration", "formality", "tech", "wellness")


@dataclass
class ParticipantRecord:
    participant_id: str
    session_code: str
    joined_at: datetime
    name: str | None = None
    generation: str | None = None
    email: str | None = None
    department: str | None = None
    responses: Dict[str, str] = field(default_factory=dict)
    preference_scores: PreferenceScores | None = None
    completed: bool = False
    completed_at: datetime | None = None

    def to_response(self) -> ParticipantResponse:
        return ParticipantResponse(
            participant_id=self.participant_id,
            session_code=self.session_code,
            name=self.name,
            generation=self.generation,
            department=self.department,
            responses=dict(self.responses),
            preference_scores=self.preference_scores,
            completed=self.completed,
            joined_at=self.joined_at,
            completed_at=self.completed_at,
        )

    def to_broadcast(self) -> Dict[str, object]:
        return {
            "id": self.participant_id,
            "name": self.name,
            "generation": self.generation,
            "department": self.department,
            "completed": self.completed,
            "joinedAt": self.joined_at,
        }

    @classmethod
    def from_model(cls, model: ParticipantModel) -> "ParticipantRecord":
        scores = PreferenceScores.model_validate(model.preference_scores) if model.preference_scores else None
        return cls(
            participant_id=model.id,
            session_code=model.session_code,
            joined_at=model.joined_at,
            name=model.name,
            generation=model.generation,
            email=model.email,
            department=model.department,
            responses=dict(model.responses or {}),
            preference_scores=scores,
            completed=bool(model.completed),
            completed_at=model.completed_at,
        )


def summarize(session_code: str, records: List[ParticipantRecord]) -> AnalyticsSnapshot:
    completed = [record for record in records if record.completed and record.preference_scores]
    average: Optional[PreferenceScores] = None
    if completed:
        average = PreferenceScores(
            **{
                dimension: round(
                    sum(getattr(record.preference_scores, dimension) for record in completed) / len(completed),
                    2,
                )
                for dimension in SCORE_DIMENSIONS
            }
        )
    total = len(records)
    done = sum(1 for record in records if record.completed)
    return AnalyticsSnapshot(
        session_code=session_code,
        total_participants=total,
        completed_participants=done,
        completion_rate=round(done / total, 4) if total else 0.0,
        average_scores=average,
        generated_at=datetime.now(timezone.utc),
    )


class ParticipantRepository:
    def join(self, session_code: str, payload: ParticipantJoinRequest) -> ParticipantRecord:
        now = datetime.now(timezone.utc)
        with SessionLocal() as db:
            model = ParticipantModel(
                id=uuid4().hex,
                session_code=session_code,
                name=payload.name,
                generation=payload.generation,
                email=payload.email,
                department=payload.department,
                responses={},
                completed=False,
                joined_at=now,
                last_activity=now,
            )
            db.add(model)
            db.commit()
            db.refresh(model)
            return ParticipantRecord.from_model(model)

    def list_participants(self, session_code: str) -> List[ParticipantRecord]:
        with SessionLocal() as db:
            models = db.scalars(
                select(ParticipantModel)
                .where(ParticipantModel.session_code == session_code)
                .order_by(ParticipantModel.joined_at.asc())
            ).all()
            return [ParticipantRecord.from_model(model) for model in models]

    def record_answer(self, session_code: str, participant_id: str, question_id: str, answer_id: str) -> ParticipantRecord:
        with SessionLocal() as db:
            model = self._load(db, session_code, participant_id)
            if model.completed:
                raise ValueError("Participant has already completed the quiz.")
            # Reassign so SQLAlchemy notices the JSON change.
            model.responses = {**(model.responses or {}), question_id: answer_id}
            model.last_activity = datetime.now(timezone.utc)
            db.commit()
            db.refresh(model)
            return ParticipantRecord.from_model(model)

    def complete(self, session_code: str, participant_id: str, scores: PreferenceScores) -> ParticipantRecord:
        with SessionLocal() as db:
            model = self._load(db, session_code, participant_id)
            if model.completed:
                raise ValueError("Participant has already completed the quiz.")
            now = datetime.now(timezone.utc)
            model.preference_scores = scores.model_dump()
            model.completed = True
            model.completed_at = now
            model.last_activity = now
            db.commit()
            db.refresh(model)
            return ParticipantRecord.from_model(model)

    def delete(self, session_code: str, participant_id: str) -> None:
        with SessionLocal() as db:
            model = self._load(db, session_code, participant_id)
            db.delete(model)
            db.commit()

    def analytics(self, session_code: str) -> AnalyticsSnapshot:
        return summarize(session_code, self.list_participants(session_code))

    @staticmethod
    def _load(db, session_code: str, participant_id: str) -> ParticipantModel:
        model = db.get(ParticipantModel, participant_id)
        if not model or model.session_code != session_code:
            raise KeyError(participant_id)
        return model


store = ParticipantRepository()
