"""elprisenligenu.dk API client for Danish day-ahead spot prices.

The API serves one static JSON file per date and bidding zone:

    https://www.elprisenligenu.dk/api/v1/prices/2025/09-21_DK1.json

Each file is a JSON array of intervals with the price in DKK/kWh and
EUR/kWh, the exchange rate, and start/end timestamps with UTC offset.
Tomorrow's file appears once Nord Pool has published, around 13:00 CET;
before that the file does not exist.

No authentication required.
"""

import logging
from datetime import date
from typing import Any

import httpx

from elpris_collector.clients.base import BaseClient, FetchError, FetchErrorKind
from elpris_collector.config import DEFAULT_API_BASE_URL
from elpris_collector.models.price import RawSample, Region
from elpris_collector.utils.time import get_market_today

logger = logging.getLogger(__name__)


def build_price_path(target_date: date, region: Region) -> str:
    """Build the path of a day's price file, e.g. `2025/09-21_DK1.json`."""
    return f"{target_date:%Y}/{target_date:%m-%d}_{region.value}.json"


class ElprisenLigenuClient(BaseClient):
    """Client for the elprisenligenu.dk price API.

    Example:
        async with ElprisenLigenuClient() as client:
            samples = await client.fetch(date(2025, 9, 21), Region.DK1)
            for sample in samples:
                print(f"{sample.interval_start}: {sample.local_price_per_unit} DKK/kWh")
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize elprisenligenu.dk client.

        Args:
            base_url: API base URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport for tests
        """
        super().__init__(base_url, timeout, transport)

    async def health_check(self) -> bool:
        """Check if today's DK1 prices can be fetched."""
        try:
            await self.fetch(get_market_today(), Region.DK1)
            return True
        except FetchError as e:
            logger.warning(f"elprisenligenu.dk health check failed: {e}")
            return False

    async def fetch(self, target_date: date, region: Region) -> list[RawSample]:
        """Fetch one day's spot prices for a region.

        Args:
            target_date: Date to fetch prices for
            region: Bidding zone

        Returns:
            RawSamples in feed order. Empty only if the feed is an empty array.

        Raises:
            FetchError: On timeout/network failure, error status, or a
                payload that is not an array of price objects
        """
        path = build_price_path(target_date, region)
        payload = await self.get(path)
        samples = self._parse_samples(payload, path)

        logger.info(f"Fetched {len(samples)} samples for {region.value} on {target_date}")
        return samples

    @staticmethod
    def _parse_samples(payload: Any, path: str) -> list[RawSample]:
        """Decode the JSON payload into RawSamples.

        Any element that cannot be parsed makes the whole payload malformed.
        """
        if not isinstance(payload, list):
            raise FetchError(
                f"Expected a JSON array from {path}, got {type(payload).__name__}",
                FetchErrorKind.MALFORMED,
            )

        samples = []
        for index, item in enumerate(payload):
            if not isinstance(item, dict):
                raise FetchError(
                    f"Element {index} of {path} is not an object",
                    FetchErrorKind.MALFORMED,
                )
            try:
                samples.append(RawSample.from_api_response(item))
            except (KeyError, TypeError, ValueError, ArithmeticError) as e:
                raise FetchError(
                    f"Element {index} of {path} is malformed: {e!r}",
                    FetchErrorKind.MALFORMED,
                ) from e

        return samples
