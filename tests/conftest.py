"""Shared fixtures for the price collector tests."""

from datetime import date, datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from elpris_collector.clients.base import FetchError, FetchErrorKind
from elpris_collector.config import TariffConfig
from elpris_collector.ingestion import IngestionCoordinator
from elpris_collector.models.price import RawSample, Region
from elpris_collector.normalizer import PriceNormalizer
from elpris_collector.storage.memory import InMemoryPriceStore

CPH = ZoneInfo("Europe/Copenhagen")
SCENARIO_DATE = date(2025, 9, 21)


def make_feed(target_date: date, base_price: float = 0.5) -> list[dict[str, Any]]:
    """Build an API payload with one element per local hour of target_date.

    Timestamps are generated the way the upstream feed writes them: local
    Danish time with the offset in force at that instant, so clock change
    days get 23 or 25 elements.
    """
    utc = ZoneInfo("UTC")
    start = datetime.combine(target_date, datetime.min.time(), tzinfo=CPH).astimezone(utc)
    end = datetime.combine(target_date + timedelta(days=1), datetime.min.time(), tzinfo=CPH).astimezone(utc)

    feed = []
    moment = start
    index = 0
    while moment < end:
        local = moment.astimezone(CPH)
        feed.append(
            {
                "DKK_per_kWh": round(base_price + index * 0.01, 5),
                "EUR_per_kWh": round((base_price + index * 0.01) / 7.46, 5),
                "EXR": 7.46,
                "time_start": local.isoformat(),
                "time_end": (moment + timedelta(hours=1)).astimezone(CPH).isoformat(),
            }
        )
        moment += timedelta(hours=1)
        index += 1
    return feed


class FakeMarketClient:
    """In-process stand-in for ElprisenLigenuClient.

    Responses are keyed on (date, region); a FetchError value is raised
    instead of returned. Unknown keys return an empty list.
    """

    def __init__(self) -> None:
        self.responses: dict[tuple[date, Region], list[dict[str, Any]] | FetchError] = {}
        self.calls: list[tuple[date, Region]] = []

    def set_feed(self, target_date: date, region: Region, feed: list[dict[str, Any]]) -> None:
        self.responses[(target_date, region)] = feed

    def set_error(self, target_date: date, region: Region, kind: FetchErrorKind) -> None:
        self.responses[(target_date, region)] = FetchError(f"simulated {kind.value}", kind)

    async def fetch(self, target_date: date, region: Region) -> list[RawSample]:
        self.calls.append((target_date, region))
        response = self.responses.get((target_date, region), [])
        if isinstance(response, FetchError):
            raise response
        return [RawSample.from_api_response(item) for item in response]


@pytest.fixture
def tariffs() -> TariffConfig:
    return TariffConfig()


@pytest.fixture
def normalizer(tariffs: TariffConfig) -> PriceNormalizer:
    return PriceNormalizer(tariffs, CPH)


@pytest.fixture
def store() -> InMemoryPriceStore:
    return InMemoryPriceStore()


@pytest.fixture
def market_client() -> FakeMarketClient:
    return FakeMarketClient()


@pytest.fixture
def coordinator(
    market_client: FakeMarketClient,
    normalizer: PriceNormalizer,
    store: InMemoryPriceStore,
) -> IngestionCoordinator:
    return IngestionCoordinator(market_client, normalizer, store, regions=(Region.DK1, Region.DK2), tz=CPH)
