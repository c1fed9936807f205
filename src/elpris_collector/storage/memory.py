"""In-memory storage backend.

Used for local runs without a database and throughout the test suite.
"""

import logging
import threading
from datetime import date, datetime

from elpris_collector.models.price import PriceRecord, Region

logger = logging.getLogger(__name__)


class InMemoryPriceStore:
    """Dictionary-backed PriceStore keyed on (region, price_date_time)."""

    def __init__(self) -> None:
        self._records: dict[tuple[Region, datetime], PriceRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def all(self) -> list[PriceRecord]:
        with self._lock:
            return sorted(self._records.values(), key=lambda r: (r.region.value, r.price_date_time))

    def exists(self, region: Region, price_date_time: datetime) -> bool:
        with self._lock:
            return (region, price_date_time) in self._records

    def save_all(self, records: list[PriceRecord]) -> list[PriceRecord]:
        inserted = []
        with self._lock:
            for record in records:
                # Conditional insert: first writer wins
                if record.key in self._records:
                    continue
                self._records[record.key] = record
                inserted.append(record)

        logger.info(f"Saved {len(inserted)} of {len(records)} price records")
        return inserted

    def find_by_region_and_date(self, region: Region, price_date: date) -> list[PriceRecord]:
        with self._lock:
            found = [
                r for r in self._records.values() if r.region is region and r.price_date == price_date
            ]
        return sorted(found, key=lambda r: r.price_date_time)

    def delete_by_region_and_date(self, region: Region, price_date: date) -> int:
        with self._lock:
            keys = [
                k for k, r in self._records.items() if r.region is region and r.price_date == price_date
            ]
            for key in keys:
                del self._records[key]

        logger.info(f"Deleted {len(keys)} price records for {region.value} on {price_date}")
        return len(keys)

    def delete_older_than(self, cutoff: date) -> int:
        with self._lock:
            keys = [k for k, r in self._records.items() if r.price_date < cutoff]
            for key in keys:
                del self._records[key]

        logger.info(f"Deleted {len(keys)} price records older than {cutoff}")
        return len(keys)
