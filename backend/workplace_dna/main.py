"""Entry point for the Workplace DNA API service."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import monitoring, sessions, stream
from .config import settings
from .database import init_db
from .realtime import RealtimeManager
from .telemetry import HealthReporter


def configure_logging() -> None:
    package_logger = logging.getLogger("workplace_dna")
    package_logger.setLevel(settings.log_level.upper())
    if not package_logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
        package_logger.addHandler(handler)


configure_logging()

app = FastAPI(title=settings.project_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_credentials="*" not in settings.allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sessions.router, prefix=settings.api_prefix)
app.include_router(stream.router, prefix=settings.api_prefix)
app.include_router(monitoring.router, prefix=settings.api_prefix)

app.state.realtime = RealtimeManager()
app.state.health_reporter = HealthReporter(app.state.realtime, settings.health_report_interval_seconds)
app.state.realtime.on_stats_updated = app.state.health_reporter.record_stats


@app.get("/healthz")
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@app.on_event("startup")
async def _startup() -> None:
    init_db()
    app.state.health_reporter.start()


@app.on_event("shutdown")
async def _shutdown() -> None:
    await app.state.health_reporter.stop()
