"""Session-keyed Server-Sent Events fan-out."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import time
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Protocol, Set

from fastapi.encoders import jsonable_encoder

try:
    import resource
except ImportError:  # pragma: no cover - not available on Windows
    resource = None

logger = logging.getLogger(__name__)

_PROCESS_STARTED = time.monotonic()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _now_ms() -> int:
    return int(time.time() * 1000)


def format_sse_message(event: str, payload: Any) -> str:
    data = json.dumps(jsonable_encoder(payload), separators=(",", ":"), ensure_ascii=False)
    return f"event: {event}\ndata: {data}\nid: {_now_ms()}\n\n"


def format_heartbeat() -> str:
    return f":heartbeat {_now_ms()}\n\n"


class ClientStreamError(RuntimeError):
    """A frame could not be handed to a client stream."""


class ClientStreamClosed(ClientStreamError):
    pass


class ClientStreamOverflow(ClientStreamError):
    pass


class OutputHandle(Protocol):
    @property
    def closed(self) -> bool: ...

    async def write(self, chunk: bytes) -> None: ...

    def close(self) -> None: ...


class ClientStream:
    """Writable end of one SSE connection, drained by the HTTP response."""

    def __init__(self, max_pending: int = 256) -> None:
        self._queue: asyncio.Queue[Optional[bytes]] = asyncio.Queue()
        self._max_pending = max_pending
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def write(self, chunk: bytes) -> None:
        if self._closed:
            raise ClientStreamClosed("client stream is closed")
        if self._queue.qsize() >= self._max_pending:
            raise ClientStreamOverflow(f"client is {self._max_pending} frames behind")
        self._queue.put_nowait(chunk)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # Wake the reader; the sentinel is never counted against max_pending.
        self._queue.put_nowait(None)

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self._queue.get()
            if chunk is None:
                return
            yield chunk


@dataclass
class SessionStats:
    attendees: int = 0
    broadcasts: int = 0
    start_time: datetime = field(default_factory=_utcnow)
    last_activity: datetime = field(default_factory=_utcnow)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ActiveSession:
    code: str
    clients: int
    stats: SessionStats

    def as_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "clients": self.clients, "stats": self.stats.as_dict()}


@dataclass
class HealthMetrics:
    active_sessions: int
    total_clients: int
    total_broadcasts: int
    uptime_seconds: float
    memory: Dict[str, int]

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _memory_usage() -> Dict[str, int]:
    if resource is None:
        return {}
    # Peak resident set size; getrusage reports bytes on macOS and KiB elsewhere.
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    if sys.platform == "darwin":
        peak //= 1024
    return {"peak_rss_kb": peak}


StatsListener = Callable[[str, SessionStats], None]


class RealtimeManager:
    """Registry of SSE clients per session code.

    A session code is present exactly while at least one client is
    registered under it; its statistics record lives and dies with it.
    All methods must be called from the event loop thread.
    """

    def __init__(self, on_stats_updated: Optional[StatsListener] = None) -> None:
        self._sessions: Dict[str, Set[OutputHandle]] = {}
        self._stats: Dict[str, SessionStats] = {}
        self._tasks: Set[asyncio.Task] = set()
        self.on_stats_updated = on_stats_updated

    def register_client(self, session_code: str, handle: OutputHandle) -> None:
        clients = self._sessions.get(session_code)
        if clients is None:
            clients = self._sessions[session_code] = set()
            self._stats[session_code] = SessionStats()
        if handle in clients:
            return
        clients.add(handle)
        self._update_stats(session_code, "join")
        logger.info("Client joined session %s. Total: %d", session_code, len(clients))

    def deregister_client(self, session_code: str, handle: OutputHandle) -> None:
        clients = self._sessions.get(session_code)
        if clients is None or handle not in clients:
            return
        clients.discard(handle)
        self._update_stats(session_code, "leave")
        if not clients:
            self._sessions.pop(session_code, None)
            self._stats.pop(session_code, None)
            logger.info("Session %s closed - no clients remaining", session_code)

    async def broadcast(self, session_code: str, event: str, payload: Any) -> None:
        clients = self._sessions.get(session_code)
        if not clients:
            return
        chunk = format_sse_message(event, payload).encode("utf-8")
        handles = list(clients)
        results = await asyncio.gather(
            *(self._deliver(session_code, handle, chunk) for handle in handles),
            return_exceptions=True,
        )
        for handle, delivered in zip(handles, results):
            if delivered is True:
                continue
            if isinstance(delivered, BaseException):
                logger.warning("Broadcast to a client of session %s failed: %r", session_code, delivered)
            try:
                self.deregister_client(session_code, handle)
            except Exception:
                logger.exception("Could not evict client from session %s", session_code)
        self._update_stats(session_code, "broadcast")

    async def _deliver(self, session_code: str, handle: OutputHandle, chunk: bytes) -> bool:
        if handle.closed:
            return False
        try:
            await handle.write(chunk)
        except Exception as exc:
            logger.warning("Client write failed in session %s: %s", session_code, exc)
            return False
        return True

    async def send_to_client(self, handle: OutputHandle, event: str, payload: Any) -> None:
        try:
            await handle.write(format_sse_message(event, payload).encode("utf-8"))
        except Exception:
            logger.error("Failed to send %s to client", event, exc_info=True)
            raise

    def publish(self, session_code: str, event: str, payload: Any) -> asyncio.Task:
        """Schedule a broadcast without waiting for delivery."""
        task = asyncio.get_running_loop().create_task(self.broadcast(session_code, event, payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def get_session_stats(self, session_code: str) -> Optional[SessionStats]:
        stats = self._stats.get(session_code)
        return replace(stats) if stats is not None else None

    def get_active_sessions(self) -> List[ActiveSession]:
        return [
            ActiveSession(code=code, clients=len(clients), stats=replace(self._stats[code]))
            for code, clients in self._sessions.items()
        ]

    def get_health_metrics(self) -> HealthMetrics:
        sessions = self.get_active_sessions()
        return HealthMetrics(
            active_sessions=len(sessions),
            total_clients=sum(session.clients for session in sessions),
            total_broadcasts=sum(session.stats.broadcasts for session in sessions),
            uptime_seconds=round(time.monotonic() - _PROCESS_STARTED, 3),
            memory=_memory_usage(),
        )

    def _update_stats(self, session_code: str, action: str) -> None:
        stats = self._stats.get(session_code)
        if stats is None:
            return
        stats.last_activity = _utcnow()
        if action == "join":
            stats.attendees += 1
        elif action == "leave":
            stats.attendees = max(0, stats.attendees - 1)
        elif action == "broadcast":
            stats.broadcasts += 1
        if self.on_stats_updated is not None:
            self.on_stats_updated(session_code, replace(stats))
