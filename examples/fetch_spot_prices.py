#!/usr/bin/env python3
"""Example: Fetch today's Danish spot prices without a database.

Runs the full ingestion pipeline against the live elprisenligenu.dk API
with an in-memory store, then prints a summary per region.

Usage:
    python examples/fetch_spot_prices.py
"""

import asyncio

from elpris_collector.clients import ElprisenLigenuClient
from elpris_collector.config import TariffConfig
from elpris_collector.ingestion import IngestionCoordinator
from elpris_collector.models import Region
from elpris_collector.normalizer import PriceNormalizer
from elpris_collector.storage import InMemoryPriceStore
from elpris_collector.summary import summarize_day


async def main():
    """Fetch, store and summarize today's prices for DK1 and DK2."""

    print("=" * 60)
    print("Danish day-ahead spot prices")
    print("=" * 60)
    print()

    store = InMemoryPriceStore()

    async with ElprisenLigenuClient() as client:
        coordinator = IngestionCoordinator(client, PriceNormalizer(TariffConfig()), store)
        report = await coordinator.ingest_today()

    print(report.summary())
    print()

    for region in Region:
        summary = summarize_day(store, region, report.target_date)
        print(f"{region.value} ({region.description}) on {report.target_date}")
        if summary.num_hours == 0:
            print("  No data")
            print()
            continue
        print(f"  Hours:    {summary.num_hours}/{summary.expected_hours}")
        print(f"  Average:  {summary.average_total:.4f} DKK/kWh")
        print(f"  Lowest:   {summary.lowest.total_price:.4f} DKK/kWh at {summary.lowest.hour:02d}:00")
        print(f"  Highest:  {summary.highest.total_price:.4f} DKK/kWh at {summary.highest.hour:02d}:00")
        print()


if __name__ == "__main__":
    asyncio.run(main())
