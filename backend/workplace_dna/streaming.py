"""Broadcast helpers for pushing participant and analytics updates."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable

from .realtime import RealtimeManager

ATTENDEE_JOINED = "attendee_joined"
RESPONSE_RECEIVED = "response_received"
ATTENDEE_COMPLETED = "attendee_completed"
ANALYTICS = "analytics"
ATTENDEE_DELETED = "attendee_deleted"


def streamer(event_type: str) -> Callable[[RealtimeManager, str, Any], asyncio.Task]:
    def _wrapper(manager: RealtimeManager, session_code: str, payload: Any) -> asyncio.Task:
        return manager.publish(session_code, event_type, payload)

    _wrapper.__name__ = event_type
    return _wrapper


attendee_joined = streamer(ATTENDEE_JOINED)
response_received = streamer(RESPONSE_RECEIVED)
analytics = streamer(ANALYTICS)


def attendee_completed(manager: RealtimeManager, session_code: str, attendee_id: str, scores: Any) -> asyncio.Task:
    return manager.publish(
        session_code,
        ATTENDEE_COMPLETED,
        {"attendeeId": attendee_id, "scores": scores, "timestamp": datetime.now(timezone.utc)},
    )


def attendee_deleted(manager: RealtimeManager, session_code: str, attendee_id: str) -> asyncio.Task:
    return manager.publish(
        session_code,
        ATTENDEE_DELETED,
        {"attendeeId": attendee_id, "timestamp": datetime.now(timezone.utc)},
    )
