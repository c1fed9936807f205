"""Daily price summaries built from stored records."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from elpris_collector.models.price import PriceRecord, Region, quantize_price
from elpris_collector.storage.base import PriceStore
from elpris_collector.utils.time import get_hours_in_day, get_market_now


class PriceSummary(BaseModel):
    """Summary of one region's stored prices for one day.

    Attributes:
        region: Bidding zone
        price_date: Day summarized
        num_hours: Number of stored hourly records
        expected_hours: Hours in that market day (23, 24 or 25)
        average_total: Mean total price in DKK/kWh
        lowest: Cheapest hour by total price
        highest: Most expensive hour by total price
        current: Record for the current local hour, only when price_date is today
    """

    region: Region
    price_date: date
    num_hours: int = Field(ge=0)
    expected_hours: int
    average_total: Decimal | None = None
    lowest: PriceRecord | None = None
    highest: PriceRecord | None = None
    current: PriceRecord | None = None

    @property
    def is_complete(self) -> bool:
        # Fall-back days collapse the repeated 02:00 hour into one record
        return self.num_hours >= min(self.expected_hours, 24)


def summarize_day(
    store: PriceStore,
    region: Region,
    price_date: date,
    now: datetime | None = None,
) -> PriceSummary:
    """Summarize the stored prices for a region and day.

    Args:
        store: Store to read from
        region: Bidding zone
        price_date: Day to summarize
        now: Current market time. Defaults to the clock in the market timezone.
    """
    records = store.find_by_region_and_date(region, price_date)
    expected = get_hours_in_day(price_date)

    if not records:
        return PriceSummary(region=region, price_date=price_date, num_hours=0, expected_hours=expected)

    now = now or get_market_now()
    current = None
    if now.date() == price_date:
        current = next((r for r in records if r.hour == now.hour), None)

    totals = [r.total_price for r in records]
    return PriceSummary(
        region=region,
        price_date=price_date,
        num_hours=len(records),
        expected_hours=expected,
        average_total=quantize_price(sum(totals, Decimal(0)) / len(totals)),
        lowest=min(records, key=lambda r: r.total_price),
        highest=max(records, key=lambda r: r.total_price),
        current=current,
    )
