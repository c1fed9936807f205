"""Ingestion report models.

One IngestionReport is produced per ingestion run (one target date),
with a RegionReport for each region that was requested.
"""

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field

from elpris_collector.models.price import Region


class RegionStatus(str, Enum):
    """Outcome of ingesting one region."""

    OK = "ok"
    EMPTY = "empty"  # upstream returned no samples, e.g. tomorrow not published yet
    FAILED = "failed"


class RegionReport(BaseModel):
    """Counts for one region in one ingestion run.

    Attributes:
        region: Bidding zone
        status: ok, empty or failed
        fetched: Samples returned by the upstream feed
        saved: Records newly written to the store
        duplicates: Records skipped because they already existed
        failed: Samples rejected during normalization
        error: Why the region failed, if it did
    """

    region: Region
    status: RegionStatus = RegionStatus.OK
    fetched: int = 0
    saved: int = 0
    duplicates: int = 0
    failed: int = 0
    error: str | None = None

    def summary(self) -> str:
        line = (
            f"{self.region.value}: {self.status.value} - {self.fetched} fetched, "
            f"{self.saved} saved, {self.duplicates} duplicates, {self.failed} failed"
        )
        if self.error:
            line += f" ({self.error})"
        return line


class IngestionReport(BaseModel):
    """Result of ingesting one target date for a set of regions."""

    target_date: date
    regions: dict[Region, RegionReport] = Field(default_factory=dict)

    @property
    def total_saved(self) -> int:
        return sum(r.saved for r in self.regions.values())

    @property
    def total_duplicates(self) -> int:
        return sum(r.duplicates for r in self.regions.values())

    @property
    def failed_regions(self) -> list[Region]:
        return [r.region for r in self.regions.values() if r.status is RegionStatus.FAILED]

    @property
    def empty_regions(self) -> list[Region]:
        return [r.region for r in self.regions.values() if r.status is RegionStatus.EMPTY]

    @property
    def has_failures(self) -> bool:
        return bool(self.failed_regions)

    def summary(self) -> str:
        """Render the report as one line per region."""
        lines = [f"Ingestion for {self.target_date}:"]
        lines.extend(f"  {r.summary()}" for r in self.regions.values())
        return "\n".join(lines)
