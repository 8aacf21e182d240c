"""Periodic health reporting for the realtime layer."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Optional

from .realtime import HealthMetrics, RealtimeManager, SessionStats

logger = logging.getLogger(__name__)


class HealthReporter:
    def __init__(self, manager: RealtimeManager, interval: float = 30.0) -> None:
        self.manager = manager
        self.interval = interval
        self.stats_updates = 0
        self._task: Optional[asyncio.Task] = None

    def record_stats(self, session_code: str, stats: SessionStats) -> None:
        self.stats_updates += 1
        logger.debug(
            "Stats updated for session %s: attendees=%d broadcasts=%d",
            session_code,
            stats.attendees,
            stats.broadcasts,
        )

    def report_once(self) -> HealthMetrics:
        metrics = self.manager.get_health_metrics()
        if metrics.active_sessions > 0:
            logger.info("Realtime health: %s", metrics.as_dict())
        return metrics

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.report_once()

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
