"""Participant lifecycle endpoints for a quiz session."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path
from fastapi.responses import Response

from .. import streaming
from ..dependencies import get_realtime
from ..realtime import RealtimeManager
from ..schemas import (
    AnalyticsSnapshot,
    AnswerRequest,
    CompletionRequest,
    ParticipantJoinRequest,
    ParticipantResponse,
)
from ..store import store

router = APIRouter(prefix="/sessions/{session_code}", tags=["sessions"])
logger = logging.getLogger(__name__)


def _publish_analytics(manager: RealtimeManager, session_code: str) -> None:
    snapshot = store.analytics(session_code)
    streaming.analytics(manager, session_code, snapshot.model_dump())


@router.post("/participants", response_model=ParticipantResponse, status_code=201)
async def join_session(
    payload: ParticipantJoinRequest,
    session_code: str = Path(..., description="Session code"),
    manager: RealtimeManager = Depends(get_realtime),
) -> ParticipantResponse:
    record = store.join(session_code, payload)
    streaming.attendee_joined(manager, session_code, record.to_broadcast())
    return record.to_response()


@router.get("/participants", response_model=List[ParticipantResponse])
def list_participants(session_code: str = Path(..., description="Session code")) -> List[ParticipantResponse]:
    return [record.to_response() for record in store.list_participants(session_code)]


@router.post("/participants/{participant_id}/responses", response_model=ParticipantResponse)
async def submit_response(
    payload: AnswerRequest,
    session_code: str = Path(..., description="Session code"),
    participant_id: str = Path(..., description="Participant identifier"),
    manager: RealtimeManager = Depends(get_realtime),
) -> ParticipantResponse:
    try:
        record = store.record_answer(session_code, participant_id, payload.question_id, payload.answer_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Participant not found") from None
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    streaming.response_received(
        manager,
        session_code,
        {
            "attendeeId": record.participant_id,
            "questionId": payload.question_id,
            "answerId": payload.answer_id,
            "answered": len(record.responses),
        },
    )
    return record.to_response()


@router.post("/participants/{participant_id}/complete", response_model=ParticipantResponse)
async def complete_quiz(
    payload: CompletionRequest,
    session_code: str = Path(..., description="Session code"),
    participant_id: str = Path(..., description="Participant identifier"),
    manager: RealtimeManager = Depends(get_realtime),
) -> ParticipantResponse:
    try:
        record = store.complete(session_code, participant_id, payload.scores)
    except KeyError:
        raise HTTPException(status_code=404, detail="Participant not found") from None
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    streaming.attendee_completed(manager, session_code, record.participant_id, payload.scores.model_dump())
    _publish_analytics(manager, session_code)
    logger.info("Participant %s completed session %s", participant_id, session_code)
    return record.to_response()


@router.delete("/participants/{participant_id}", status_code=204)
async def delete_participant(
    session_code: str = Path(..., description="Session code"),
    participant_id: str = Path(..., description="Participant identifier"),
    manager: RealtimeManager = Depends(get_realtime),
) -> Response:
    try:
        store.delete(session_code, participant_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Participant not found") from None
    streaming.attendee_deleted(manager, session_code, participant_id)
    _publish_analytics(manager, session_code)
    return Response(status_code=204)


@router.get("/analytics", response_model=AnalyticsSnapshot)
def session_analytics(session_code: str = Path(..., description="Session code")) -> AnalyticsSnapshot:
    return store.analytics(session_code)
