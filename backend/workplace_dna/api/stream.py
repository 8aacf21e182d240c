"""Server-Sent Events streaming endpoint."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import AsyncIterator

from fastapi import APIRouter, Depends, Path
from fastapi.responses import PlainTextResponse, Response, StreamingResponse

from ..config import settings
from ..dependencies import get_realtime
from ..realtime import ClientStream, OutputHandle, RealtimeManager, format_heartbeat

router = APIRouter(tags=["stream"])
logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
    "Access-Control-Allow-Origin": "*",
}


async def heartbeat(manager: RealtimeManager, session_code: str, handle: OutputHandle, interval: float) -> None:
    """Write comment frames until the handle refuses one, then evict it."""
    while True:
        await asyncio.sleep(interval)
        try:
            await handle.write(format_heartbeat().encode("utf-8"))
        except Exception as exc:
            logger.info("Heartbeat failed for session %s: %s", session_code, exc)
            manager.deregister_client(session_code, handle)
            handle.close()
            return


async def event_stream(
    manager: RealtimeManager,
    session_code: str,
    handle: ClientStream,
    interval: float,
) -> AsyncIterator[bytes]:
    beat = asyncio.create_task(heartbeat(manager, session_code, handle, interval))
    try:
        async for chunk in handle:
            yield chunk
    finally:
        logger.info("Client disconnecting from session %s", session_code)
        beat.cancel()
        manager.deregister_client(session_code, handle)
        handle.close()


class SessionStreamResponse(StreamingResponse):
    """Streams one client's frames and releases its registration when the response ends."""

    def __init__(self, manager: RealtimeManager, session_code: str, handle: ClientStream, interval: float) -> None:
        self.manager = manager
        self.session_code = session_code
        self.handle = handle
        super().__init__(event_stream(manager, session_code, handle, interval), headers=SSE_HEADERS)

    async def __call__(self, scope, receive, send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            # The body may never have started if the client dropped during the response start.
            await self.body_iterator.aclose()
            self.manager.deregister_client(self.session_code, self.handle)
            self.handle.close()


@router.get("/sessions/{session_code}/stream")
async def session_stream(
    session_code: str = Path(..., description="Session code"),
    manager: RealtimeManager = Depends(get_realtime),
) -> Response:
    logger.info("Client connecting to session %s", session_code)
    handle = ClientStream(max_pending=settings.client_queue_size)
    manager.register_client(session_code, handle)
    try:
        await manager.send_to_client(
            handle,
            "connected",
            {"sessionCode": session_code, "timestamp": datetime.now(timezone.utc).isoformat()},
        )
    except Exception:
        logger.warning("Failed to send initial connection event to session %s", session_code)
        handle.close()
        manager.deregister_client(session_code, handle)
        return PlainTextResponse("Connection failed", status_code=500)

    return SessionStreamResponse(manager, session_code, handle, settings.heartbeat_interval_seconds)
