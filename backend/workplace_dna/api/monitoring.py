"""Realtime monitoring endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path

from ..dependencies import get_realtime
from ..realtime import RealtimeManager
from ..schemas import ActiveSessionResponse, HealthMetricsResponse, SessionStatsResponse

router = APIRouter(prefix="/realtime", tags=["realtime"])


@router.get("/health", response_model=HealthMetricsResponse)
async def realtime_health(manager: RealtimeManager = Depends(get_realtime)) -> HealthMetricsResponse:
    return HealthMetricsResponse.model_validate(manager.get_health_metrics().as_dict())


@router.get("/sessions", response_model=List[ActiveSessionResponse])
async def active_sessions(manager: RealtimeManager = Depends(get_realtime)) -> List[ActiveSessionResponse]:
    return [ActiveSessionResponse.model_validate(session.as_dict()) for session in manager.get_active_sessions()]


@router.get("/sessions/{session_code}", response_model=SessionStatsResponse)
async def session_stats(
    session_code: str = Path(..., description="Session code"),
    manager: RealtimeManager = Depends(get_realtime),
) -> SessionStatsResponse:
    stats = manager.get_session_stats(session_code)
    if stats is None:
        raise HTTPException(status_code=404, detail="Session has no connected clients")
    return SessionStatsResponse.model_validate(stats.as_dict())
