"""Pydantic schemas for the Workplace DNA API."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

Generation = Literal["Baby Boomers", "Gen X", "Millennials", "Gen Z"]


class PreferenceScores(BaseModel):
    collaboration: float = Field(..., ge=0.0)
    formality: float = Field(..., ge=0.0)
    tech: float = Field(..., ge=0.0)
    wellness: float = Field(..., ge=0.0)


class ParticipantJoinRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    generation: Optional[Generation] = None
    email: Optional[EmailStr] = None
    department: Optional[str] = Field(None, max_length=100)


class ParticipantResponse(BaseModel):
    participant_id: str
    session_code: str
    name: Optional[str] = None
    generation: Optional[str] = None
    department: Optional[str] = None
    responses: dict[str, str] = Field(default_factory=dict)
    preference_scores: Optional[PreferenceScores] = None
    completed: bool = False
    joined_at: datetime
    completed_at: Optional[datetime] = None


class AnswerRequest(BaseModel):
    question_id: str = Field(..., min_length=1)
    answer_id: str = Field(..., min_length=1)


class CompletionRequest(BaseModel):
    scores: PreferenceScores


class AnalyticsSnapshot(BaseModel):
    session_code: str
    total_participants: int
    completed_participants: int
    completion_rate: float
    average_scores: Optional[PreferenceScores] = None
    generated_at: datetime


class SessionStatsResponse(BaseModel):
    attendees: int
    broadcasts: int
    start_time: datetime
    last_activity: datetime


class ActiveSessionResponse(BaseModel):
    code: str
    clients: int
    stats: SessionStatsResponse


class HealthMetricsResponse(BaseModel):
    active_sessions: int
    total_clients: int
    total_broadcasts: int
    uptime_seconds: float
    memory: dict[str, int]
