"""Normalization of raw feed samples into PriceRecords.

The feed timestamps carry a UTC offset. The canonical hour is taken from
converting that instant into the market's named timezone, and the record
is filed under the date the caller asked for, not the date the converted
timestamp falls on.
"""

import logging
from collections.abc import Iterable
from datetime import date
from zoneinfo import ZoneInfo

from elpris_collector.config import TariffConfig
from elpris_collector.models.price import PriceRecord, RawSample, Region
from elpris_collector.utils.time import MARKET_TZ, to_market_time

logger = logging.getLogger(__name__)


class NormalizationError(ValueError):
    """Raised when a single sample cannot be turned into a PriceRecord."""

    def __init__(self, message: str, sample: RawSample | None = None):
        super().__init__(message)
        self.sample = sample


class PriceNormalizer:
    """Converts RawSamples into PriceRecords.

    Example:
        normalizer = PriceNormalizer(TariffConfig())
        record = normalizer.normalize(sample, Region.DK1, date(2025, 9, 21))
    """

    def __init__(self, tariffs: TariffConfig, tz: ZoneInfo | str = MARKET_TZ):
        """Initialize the normalizer.

        Args:
            tariffs: Fixed tariffs and tax added to every spot price
            tz: Market timezone, as a ZoneInfo or IANA name
        """
        self.tariffs = tariffs
        self.tz = ZoneInfo(tz) if isinstance(tz, str) else tz

    def normalize(self, sample: RawSample, region: Region, for_date: date) -> PriceRecord:
        """Normalize one sample.

        Args:
            sample: Raw feed sample
            region: Region the sample was fetched for
            for_date: Date the caller fetched prices for

        Returns:
            PriceRecord for the sample's local hour on for_date

        Raises:
            NormalizationError: If the sample has no UTC offset or bad values
        """
        try:
            local_start = to_market_time(sample.interval_start, self.tz)
        except ValueError as e:
            raise NormalizationError(str(e), sample) from e

        if local_start.date() != for_date:
            logger.debug(
                f"Sample {sample.interval_start.isoformat()} is {local_start.date()} locally, "
                f"filing under {for_date}"
            )

        try:
            return PriceRecord(
                region=region,
                price_date=for_date,
                hour=local_start.hour,
                spot_price=sample.local_price_per_unit,
                transmission_tariff=self.tariffs.transmission_tariff,
                system_tariff=self.tariffs.system_tariff,
                electricity_tax=self.tariffs.electricity_tax,
            )
        except ValueError as e:
            raise NormalizationError(f"Invalid sample values: {e}", sample) from e

    def normalize_all(
        self,
        samples: Iterable[RawSample],
        region: Region,
        for_date: date,
    ) -> tuple[list[PriceRecord], int]:
        """Normalize a batch, skipping samples that cannot be normalized.

        Returns:
            Tuple of (records, number of rejected samples)
        """
        records: list[PriceRecord] = []
        rejected = 0

        for sample in samples:
            try:
                records.append(self.normalize(sample, region, for_date))
            except NormalizationError as e:
                rejected += 1
                logger.warning(f"Skipping sample for {region.value} on {for_date}: {e}")

        return records, rejected
