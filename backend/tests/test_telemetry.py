import asyncio
import logging

from workplace_dna.realtime import RealtimeManager
from workplace_dna.telemetry import HealthReporter


def test_report_is_silent_without_sessions(caplog):
    reporter = HealthReporter(RealtimeManager())
    caplog.set_level(logging.INFO, logger="workplace_dna.telemetry")

    metrics = reporter.report_once()

    assert metrics.active_sessions == 0
    assert not [r for r in caplog.records if r.name == "workplace_dna.telemetry"]


def test_report_logs_when_sessions_active(caplog, handle_factory):
    manager = RealtimeManager()
    manager.register_client("LIVE", handle_factory())
    reporter = HealthReporter(manager)
    caplog.set_level(logging.INFO, logger="workplace_dna.telemetry")

    metrics = reporter.report_once()

    assert metrics.total_clients == 1
    assert any("Realtime health" in r.getMessage() for r in caplog.records)


def test_reporter_counts_stats_updates(handle_factory):
    manager = RealtimeManager()
    reporter = HealthReporter(manager)
    manager.on_stats_updated = reporter.record_stats
    client = handle_factory()

    manager.register_client("LIVE", client)
    manager.deregister_client("LIVE", client)

    assert reporter.stats_updates == 2


def test_reporter_runs_periodically_until_stopped(handle_factory):
    manager = RealtimeManager()
    manager.register_client("LIVE", handle_factory())
    reporter = HealthReporter(manager, interval=0.01)
    calls = []
    original = reporter.report_once

    def counting_report():
        calls.append(1)
        return original()

    reporter.report_once = counting_report

    async def run():
        reporter.start()
        await asyncio.sleep(0.05)
        await reporter.stop()

    asyncio.run(run())
    assert len(calls) >= 2
