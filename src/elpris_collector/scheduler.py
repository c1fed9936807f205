"""Scheduler for automatic price ingestion.

Uses APScheduler cron triggers in the market timezone, so every job fires
at the same local wall-clock time across daylight-saving changes:

    13:05  fetch today's prices
    13:10  fetch tomorrow's prices (published around 13:00 CET)
    13:15  backup: fetch both again in case an earlier run was missed
    00:00  delete prices older than the retention period

Every job catches and logs its own failures, so one bad run never stops
the scheduler or delays any other job.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, time
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from elpris_collector.config import ScheduleConfig
from elpris_collector.ingestion import IngestionCoordinator
from elpris_collector.models.report import IngestionReport, RegionStatus
from elpris_collector.utils.time import MARKET_TZ, get_market_now

logger = logging.getLogger(__name__)

# Seconds a job may start late (e.g. after a sleep) before the run is skipped
MISFIRE_GRACE_SECONDS = 15 * 60


class Scheduler:
    """Scheduler for daily price ingestion.

    Example:
        scheduler = Scheduler(coordinator)
        scheduler.start()
        # Runs until interrupted
    """

    def __init__(
        self,
        coordinator: IngestionCoordinator,
        config: ScheduleConfig | None = None,
        tz: ZoneInfo = MARKET_TZ,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize the scheduler.

        Args:
            coordinator: Ingestion coordinator the jobs call into
            config: Job times and retention. Defaults to ScheduleConfig().
            tz: Timezone the job times are expressed in
            clock: Returns the current market time; overridable in tests
        """
        self.coordinator = coordinator
        self.config = config or ScheduleConfig()
        self.tz = tz
        self._clock = clock or (lambda: get_market_now(self.tz))
        self.scheduler = AsyncIOScheduler(timezone=tz)

    def _trigger(self, at: time) -> CronTrigger:
        return CronTrigger(hour=at.hour, minute=at.minute, timezone=self.tz)

    def _setup_jobs(self) -> None:
        """Configure scheduled jobs."""
        jobs = [
            (self._fetch_today_job, self.config.fetch_today_at, "fetch_today", "Fetch Today's Prices"),
            (
                self._fetch_tomorrow_job,
                self.config.fetch_tomorrow_at,
                "fetch_tomorrow",
                "Fetch Tomorrow's Prices",
            ),
            (self._backup_job, self.config.backup_at, "fetch_backup", "Backup Fetch (Today + Tomorrow)"),
            (self._cleanup_job, self.config.cleanup_at, "cleanup", "Cleanup Old Prices"),
        ]

        for func, at, job_id, name in jobs:
            self.scheduler.add_job(
                func,
                self._trigger(at),
                id=job_id,
                name=name,
                replace_existing=True,
                coalesce=True,
                max_instances=1,
                misfire_grace_time=MISFIRE_GRACE_SECONDS,
            )

    def _tomorrow_expected(self) -> bool:
        """Whether tomorrow's prices should be published by now."""
        return self._clock().hour >= self.config.tomorrow_publish_hour

    def _log_report(self, job_name: str, report: IngestionReport, expect_published: bool) -> None:
        """Log one outcome line per region.

        Missing prices are only a problem once they should have been
        published; before that they are reported at INFO.
        """
        for result in report.regions.values():
            where = f"{result.region.value} on {report.target_date}"

            if result.status is RegionStatus.OK:
                logger.info(
                    f"{job_name}: {where} - {result.saved} saved, "
                    f"{result.duplicates} duplicates, {result.failed} rejected"
                )
            elif not expect_published:
                logger.info(f"{job_name}: prices for {where} not published yet ({result.status.value})")
            elif result.status is RegionStatus.EMPTY:
                logger.warning(f"{job_name}: no prices returned for {where}")
            else:
                logger.error(f"{job_name}: failed for {where}: {result.error}")

    async def _fetch_today_job(self) -> None:
        """Job: Fetch today's prices."""
        logger.info("Running fetch today job")
        try:
            report = await self.coordinator.ingest_today()
            self._log_report("Fetch today", report, expect_published=True)
        except Exception as e:
            logger.error(f"Fetch today job failed: {e}", exc_info=True)

    async def _fetch_tomorrow_job(self) -> None:
        """Job: Fetch tomorrow's prices."""
        logger.info("Running fetch tomorrow job")
        try:
            report = await self.coordinator.ingest_tomorrow()
            self._log_report("Fetch tomorrow", report, expect_published=self._tomorrow_expected())
        except Exception as e:
            logger.error(f"Fetch tomorrow job failed: {e}", exc_info=True)

    async def _backup_job(self) -> None:
        """Job: Fetch today and tomorrow again to cover a missed run."""
        logger.info("Running backup fetch job")
        await self._fetch_today_job()
        await self._fetch_tomorrow_job()

    async def _cleanup_job(self) -> None:
        """Job: Delete prices older than the retention period."""
        logger.info("Running cleanup job")
        try:
            deleted = await asyncio.to_thread(
                self.coordinator.cleanup_old_prices, self.config.retention_days
            )
            logger.info(f"Cleanup job completed: {deleted} records deleted")
        except Exception as e:
            logger.error(f"Cleanup job failed: {e}", exc_info=True)

    async def startup_fetch(self) -> None:
        """Fetch today's and tomorrow's prices once, e.g. right after start.

        Tomorrow's prices are often not available yet at startup, which is
        logged at INFO.
        """
        logger.info("Initializing price data on startup...")
        await self._fetch_today_job()
        await self._fetch_tomorrow_job()
        logger.info("Startup price initialization completed")

    async def run_once(self) -> dict[str, IngestionReport]:
        """Ingest today and tomorrow once (useful for testing).

        Returns:
            Reports keyed by "today" and "tomorrow"
        """
        return {
            "today": await self.coordinator.ingest_today(),
            "tomorrow": await self.coordinator.ingest_tomorrow(),
        }

    async def _run_forever(self, startup_fetch: bool) -> None:
        self._setup_jobs()

        logger.info("Starting scheduler...")
        logger.info("Jobs scheduled:")
        for job in self.scheduler.get_jobs():
            logger.info(f"  - {job.name}: {job.trigger}")

        self.scheduler.start()
        try:
            if startup_fetch:
                await self.startup_fetch()
            # Run until cancelled
            await asyncio.Event().wait()
        finally:
            logger.info("Shutting down scheduler...")
            self.scheduler.shutdown(wait=False)

    def start(self, startup_fetch: bool = True) -> None:
        """Start the scheduler.

        This is a blocking call that runs until interrupted.

        Args:
            startup_fetch: Fetch today and tomorrow immediately before
                waiting for the first scheduled job
        """
        try:
            asyncio.run(self._run_forever(startup_fetch))
        except (KeyboardInterrupt, SystemExit):
            logger.info("Scheduler stopped")
