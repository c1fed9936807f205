"""Ingestion pipeline: fetch -> normalize -> dedup -> persist.

Each region is processed on its own. A region whose fetch or store call
fails is marked failed in the report and the next region still runs.
Store calls are synchronous and run in a worker thread, off the event loop.
"""

import asyncio
import logging
from collections.abc import Iterable
from datetime import date, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo

from elpris_collector.clients.base import FetchError
from elpris_collector.models.price import PriceRecord, RawSample, Region
from elpris_collector.models.report import IngestionReport, RegionReport, RegionStatus
from elpris_collector.normalizer import PriceNormalizer
from elpris_collector.storage.base import PersistenceError, PriceStore
from elpris_collector.utils.time import MARKET_TZ, get_market_today

logger = logging.getLogger(__name__)


class MarketDataClient(Protocol):
    """Anything that can fetch a day's raw samples for a region."""

    async def fetch(self, target_date: date, region: Region) -> list[RawSample]: ...


class IngestionCoordinator:
    """Orchestrates price ingestion for one or more regions.

    Example:
        coordinator = IngestionCoordinator(client, normalizer, store)
        report = await coordinator.ingest_tomorrow()
        print(report.summary())
    """

    def __init__(
        self,
        client: MarketDataClient,
        normalizer: PriceNormalizer,
        store: PriceStore,
        regions: Iterable[Region] = (Region.DK1, Region.DK2),
        tz: ZoneInfo = MARKET_TZ,
    ):
        """Initialize the coordinator.

        Args:
            client: Market data client
            normalizer: Converts raw samples into PriceRecords
            store: Persistence backend
            regions: Regions ingested by the composite entry points
            tz: Market timezone, used to decide what "today" is
        """
        self.client = client
        self.normalizer = normalizer
        self.store = store
        self.regions = tuple(regions)
        self.tz = tz

    async def ingest(
        self,
        target_date: date,
        regions: Iterable[Region] | None = None,
    ) -> IngestionReport:
        """Ingest one date for a set of regions.

        Args:
            target_date: Date to fetch prices for
            regions: Regions to ingest. Defaults to all configured regions.

        Returns:
            IngestionReport with per-region counts
        """
        report = IngestionReport(target_date=target_date)

        for region in regions if regions is not None else self.regions:
            report.regions[region] = await self._ingest_region(target_date, region)

        logger.info(report.summary())
        return report

    async def ingest_today(self) -> IngestionReport:
        """Ingest today's prices for all configured regions."""
        return await self.ingest(get_market_today(self.tz))

    async def ingest_tomorrow(self) -> IngestionReport:
        """Ingest tomorrow's prices for all configured regions."""
        return await self.ingest(get_market_today(self.tz) + timedelta(days=1))

    def cleanup_old_prices(self, days_to_keep: int) -> int:
        """Delete records whose price date is more than days_to_keep days ago.

        Returns:
            Number of records deleted
        """
        cutoff = get_market_today(self.tz) - timedelta(days=days_to_keep)
        logger.info(f"Cleaning up prices older than {cutoff}")
        return self.store.delete_older_than(cutoff)

    async def _ingest_region(self, target_date: date, region: Region) -> RegionReport:
        result = RegionReport(region=region)

        try:
            samples = await self.client.fetch(target_date, region)
        except FetchError as e:
            # Severity is left to the caller, who knows whether prices are due yet
            logger.info(
                f"Fetch failed for {region.value} on {target_date} ({e.kind.value}): {e}"
            )
            result.status = RegionStatus.FAILED
            result.error = f"{e.kind.value}: {e}"
            return result

        result.fetched = len(samples)
        if not samples:
            logger.info(f"No prices published yet for {region.value} on {target_date}")
            result.status = RegionStatus.EMPTY
            return result

        records, result.failed = self.normalizer.normalize_all(samples, region, target_date)

        try:
            to_save = await asyncio.to_thread(self._drop_existing, records, result)
            if to_save:
                saved = await asyncio.to_thread(self.store.save_all, to_save)
                result.saved = len(saved)
                # Rows another run inserted between our check and our write
                result.duplicates += len(to_save) - len(saved)
        except PersistenceError as e:
            logger.error(f"Store failed for {region.value} on {target_date}: {e}")
            result.status = RegionStatus.FAILED
            result.error = f"persistence: {e}"

        return result

    def _drop_existing(self, records: list[PriceRecord], result: RegionReport) -> list[PriceRecord]:
        """Keep only records not already stored and not repeated in this batch."""
        to_save: list[PriceRecord] = []
        seen = set()

        for record in records:
            if record.key in seen or self.store.exists(record.region, record.price_date_time):
                result.duplicates += 1
                continue
            seen.add(record.key)
            to_save.append(record)

        return to_save
