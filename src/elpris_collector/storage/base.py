"""Storage interface for price records.

The store is the single point of mutual exclusion for the
one-record-per-(region, hour) rule: `save_all` must insert conditionally,
so two overlapping ingestion runs can never produce a duplicate row.
"""

from datetime import date, datetime
from typing import Protocol, runtime_checkable

from elpris_collector.models.price import PriceRecord, Region


class PersistenceError(Exception):
    """Raised when the store is unreachable or rejects a write."""

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


@runtime_checkable
class PriceStore(Protocol):
    """Persistence boundary used by the ingestion pipeline."""

    def exists(self, region: Region, price_date_time: datetime) -> bool:
        """Check whether a record exists for the region and local hour."""
        ...

    def save_all(self, records: list[PriceRecord]) -> list[PriceRecord]:
        """Insert records that do not exist yet.

        Returns:
            The records that were actually inserted
        """
        ...

    def find_by_region_and_date(self, region: Region, price_date: date) -> list[PriceRecord]:
        """Get all records for a region and price date, ordered by hour."""
        ...

    def delete_by_region_and_date(self, region: Region, price_date: date) -> int:
        """Delete all records for a region and price date. Returns the count."""
        ...

    def delete_older_than(self, cutoff: date) -> int:
        """Delete every record with price_date before cutoff. Returns the count."""
        ...
