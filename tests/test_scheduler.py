"""Tests for the ingestion scheduler."""

import logging
import threading
from datetime import date, datetime, time, timedelta

import pytest
from apscheduler.triggers.cron import CronTrigger

from conftest import CPH
from elpris_collector.config import ScheduleConfig
from elpris_collector.models.price import Region
from elpris_collector.models.report import IngestionReport, RegionReport, RegionStatus
from elpris_collector.scheduler import Scheduler


def report_with(status: RegionStatus, error: str | None = None) -> IngestionReport:
    return IngestionReport(
        target_date=date(2025, 9, 22),
        regions={Region.DK1: RegionReport(region=Region.DK1, status=status, error=error)},
    )


class StubCoordinator:
    """Records calls; raises or returns whatever each entry point is told to."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.today: IngestionReport | Exception = report_with(RegionStatus.OK)
        self.tomorrow: IngestionReport | Exception = report_with(RegionStatus.OK)
        self.cleanup: int | Exception = 0
        self.cleanup_days: list[int] = []
        self.cleanup_threads: list[int] = []

    async def ingest_today(self) -> IngestionReport:
        self.calls.append("today")
        if isinstance(self.today, Exception):
            raise self.today
        return self.today

    async def ingest_tomorrow(self) -> IngestionReport:
        self.calls.append("tomorrow")
        if isinstance(self.tomorrow, Exception):
            raise self.tomorrow
        return self.tomorrow

    def cleanup_old_prices(self, days_to_keep: int) -> int:
        self.calls.append("cleanup")
        self.cleanup_days.append(days_to_keep)
        self.cleanup_threads.append(threading.get_ident())
        if isinstance(self.cleanup, Exception):
            raise self.cleanup
        return self.cleanup


@pytest.fixture
def coordinator() -> StubCoordinator:
    return StubCoordinator()


def make_scheduler(coordinator: StubCoordinator, now: datetime | None = None) -> Scheduler:
    clock = (lambda: now) if now else None
    return Scheduler(coordinator, ScheduleConfig(), CPH, clock=clock)


class TestJobSetup:
    """Test job registration and trigger times."""

    def test_jobs_registered(self, coordinator):
        sched = make_scheduler(coordinator)
        sched._setup_jobs()

        jobs = {job.id: job for job in sched.scheduler.get_jobs()}

        assert set(jobs) == {"fetch_today", "fetch_tomorrow", "fetch_backup", "cleanup"}
        for job in jobs.values():
            assert isinstance(job.trigger, CronTrigger)
            assert job.coalesce is True
            assert job.max_instances == 1

    def test_fire_times_fixed_in_local_time_across_dst(self, coordinator):
        sched = make_scheduler(coordinator)
        sched._setup_jobs()
        trigger = {job.id: job for job in sched.scheduler.get_jobs()}["fetch_today"].trigger

        # Day before the October clock change (CEST, UTC+2)
        before = trigger.get_next_fire_time(None, datetime(2025, 10, 25, 12, 0, tzinfo=CPH))
        # Next firing after the change (CET, UTC+1)
        after = trigger.get_next_fire_time(None, before + timedelta(minutes=1))

        for fire_time in (before, after):
            local = fire_time.astimezone(CPH)
            assert (local.hour, local.minute) == (13, 5)
        assert before.utcoffset() == timedelta(hours=2)
        assert after.utcoffset() == timedelta(hours=1)
        assert after.astimezone(CPH).date() == date(2025, 10, 26)

    def test_configured_times(self, coordinator):
        config = ScheduleConfig(fetch_tomorrow_at=time(13, 30), cleanup_at=time(3, 15))
        sched = Scheduler(coordinator, config, CPH)
        sched._setup_jobs()
        jobs = {job.id: job for job in sched.scheduler.get_jobs()}

        fire = jobs["cleanup"].trigger.get_next_fire_time(None, datetime(2025, 9, 21, 12, 0, tzinfo=CPH))
        assert fire.astimezone(CPH).replace(tzinfo=None) == datetime(2025, 9, 22, 3, 15)

        fire = jobs["fetch_tomorrow"].trigger.get_next_fire_time(None, datetime(2025, 9, 21, 12, 0, tzinfo=CPH))
        assert fire.astimezone(CPH).replace(tzinfo=None) == datetime(2025, 9, 21, 13, 30)


class TestFailureBoundaries:
    """Test that each job swallows its own failures."""

    async def test_today_job_swallows_exception(self, coordinator):
        coordinator.today = RuntimeError("database down")
        sched = make_scheduler(coordinator)

        await sched._fetch_today_job()

        assert coordinator.calls == ["today"]

    async def test_backup_runs_tomorrow_even_if_today_fails(self, coordinator):
        coordinator.today = RuntimeError("boom")
        sched = make_scheduler(coordinator)

        await sched._backup_job()

        assert coordinator.calls == ["today", "tomorrow"]

    async def test_cleanup_job_uses_retention_and_swallows_errors(self, coordinator):
        sched = make_scheduler(coordinator)

        await sched._cleanup_job()
        coordinator.cleanup = RuntimeError("timeout")
        await sched._cleanup_job()

        assert coordinator.cleanup_days == [30, 30]

    async def test_cleanup_job_runs_off_event_loop_thread(self, coordinator):
        sched = make_scheduler(coordinator)

        await sched._cleanup_job()

        assert coordinator.cleanup_threads
        assert threading.get_ident() not in coordinator.cleanup_threads

    async def test_startup_fetch_runs_both(self, coordinator):
        coordinator.tomorrow = RuntimeError("not yet")
        sched = make_scheduler(coordinator)

        await sched.startup_fetch()

        assert coordinator.calls == ["today", "tomorrow"]

    async def test_run_once_returns_both_reports(self, coordinator):
        sched = make_scheduler(coordinator)

        reports = await sched.run_once()

        assert set(reports) == {"today", "tomorrow"}


class TestTomorrowSeverity:
    """Missing tomorrow prices are INFO before publication, ERROR after."""

    async def test_failure_before_publication_is_info(self, coordinator, caplog):
        coordinator.tomorrow = report_with(RegionStatus.FAILED, "non2xx: API error: 404")
        sched = make_scheduler(coordinator, now=datetime(2025, 9, 21, 9, 0, tzinfo=CPH))

        with caplog.at_level(logging.INFO, logger="elpris_collector.scheduler"):
            await sched._fetch_tomorrow_job()

        messages = [r for r in caplog.records if "DK1" in r.getMessage()]
        assert messages
        assert all(r.levelno == logging.INFO for r in messages)
        assert "not published yet" in messages[0].getMessage()

    async def test_failure_after_publication_is_error(self, coordinator, caplog):
        coordinator.tomorrow = report_with(RegionStatus.FAILED, "non2xx: API error: 404")
        sched = make_scheduler(coordinator, now=datetime(2025, 9, 21, 13, 10, tzinfo=CPH))

        with caplog.at_level(logging.INFO, logger="elpris_collector.scheduler"):
            await sched._fetch_tomorrow_job()

        assert any(r.levelno == logging.ERROR and "DK1" in r.getMessage() for r in caplog.records)

    async def test_empty_after_publication_is_warning(self, coordinator, caplog):
        coordinator.tomorrow = report_with(RegionStatus.EMPTY)
        sched = make_scheduler(coordinator, now=datetime(2025, 9, 21, 14, 0, tzinfo=CPH))

        with caplog.at_level(logging.INFO, logger="elpris_collector.scheduler"):
            await sched._fetch_tomorrow_job()

        assert any(r.levelno == logging.WARNING and "DK1" in r.getMessage() for r in caplog.records)
