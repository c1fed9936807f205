"""Price data models for Danish day-ahead spot prices.

Denmark is split into two bidding zones:
- DK1 = West Denmark (Jutland, Funen)
- DK2 = East Denmark (Zealand, Copenhagen)

Prices are quoted per hour in DKK/kWh. A stored PriceRecord carries the
spot price plus the fixed tariffs and tax, and derives the total from them.
"""

from datetime import UTC, date, datetime, time
from decimal import ROUND_HALF_EVEN, Decimal
from enum import Enum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

# All price components are stored with six fractional digits
PRICE_QUANTUM = Decimal("0.000001")

COMPONENT_FIELDS = ("spot_price", "transmission_tariff", "system_tariff", "electricity_tax")


def _utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


def quantize_price(value: Decimal) -> Decimal:
    """Round a price to the fixed storage precision."""
    return value.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_EVEN)


class Region(str, Enum):
    """Danish bidding zone."""

    DK1 = "DK1"
    DK2 = "DK2"

    @property
    def description(self) -> str:
        return "West Denmark" if self is Region.DK1 else "East Denmark"


class RawSample(BaseModel):
    """One interval from the elprisenligenu.dk feed, before normalization.

    Attributes:
        local_price_per_unit: Spot price in DKK/kWh
        interval_start: Start of the interval, with the feed's UTC offset
        interval_end: End of the interval, if the feed supplied it
    """

    local_price_per_unit: Decimal
    interval_start: datetime
    interval_end: datetime | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Self:
        """Create RawSample from one element of the API response.

        The API returns a list of objects like:
        {
            "DKK_per_kWh": 0.74521,
            "EUR_per_kWh": 0.09989,
            "EXR": 7.46,
            "time_start": "2025-09-21T00:00:00+02:00",
            "time_end": "2025-09-21T01:00:00+02:00"
        }
        """
        time_end = data.get("time_end")
        return cls(
            local_price_per_unit=Decimal(str(data["DKK_per_kWh"])),
            interval_start=datetime.fromisoformat(data["time_start"]),
            interval_end=datetime.fromisoformat(time_end) if time_end else None,
        )


class PriceRecord(BaseModel):
    """One hour's price for one region.

    The record is frozen. `price_date_time` and `total_price` are computed
    from the other fields, so they can never disagree with them. Use
    `with_components()` to derive a record with different tariffs.

    Attributes:
        region: Bidding zone
        price_date: The day these prices are for
        hour: Local wall-clock hour within price_date (0-23)
        spot_price: Wholesale spot price in DKK/kWh
        transmission_tariff: Transmission grid tariff in DKK/kWh
        system_tariff: System tariff in DKK/kWh
        electricity_tax: Electricity tax in DKK/kWh
        created_at: When this record was fetched (audit trail)
    """

    model_config = ConfigDict(frozen=True)

    region: Region
    price_date: date
    hour: int = Field(ge=0, le=23)
    spot_price: Decimal
    transmission_tariff: Decimal
    system_tariff: Decimal
    electricity_tax: Decimal
    created_at: datetime = Field(default_factory=_utc_now)

    @field_validator(*COMPONENT_FIELDS)
    @classmethod
    def validate_precision(cls, v: Decimal) -> Decimal:
        """Quantize every component to six fractional digits."""
        if not v.is_finite():
            raise ValueError(f"Price component must be finite, got {v}")
        return quantize_price(v)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def price_date_time(self) -> datetime:
        """Canonical local timestamp: price_date at hour:00."""
        return datetime.combine(self.price_date, time(hour=self.hour))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_price(self) -> Decimal:
        """Spot price plus tariffs and tax."""
        return quantize_price(
            self.spot_price + self.transmission_tariff + self.system_tariff + self.electricity_tax
        )

    @property
    def key(self) -> tuple[Region, datetime]:
        """Identity used for deduplication."""
        return self.region, self.price_date_time

    def with_components(self, **changes: Decimal) -> Self:
        """Return a copy with some price components replaced.

        Only the four price components may be changed. The copy is fully
        validated, and its total is recomputed from the new values.
        """
        unknown = set(changes) - set(COMPONENT_FIELDS)
        if unknown:
            raise ValueError(f"Only price components can be changed, got {sorted(unknown)}")

        data = self.model_dump(exclude={"price_date_time", "total_price"})
        data.update(changes)
        return type(self).model_validate(data)

    def to_row(self) -> dict[str, Any]:
        """Flatten to a storage row. Decimals are kept exact as strings."""
        return {
            "region": self.region.value,
            "price_date": self.price_date.isoformat(),
            "hour": self.hour,
            "price_date_time": self.price_date_time.isoformat(),
            "spot_price": str(self.spot_price),
            "transmission_tariff": str(self.transmission_tariff),
            "system_tariff": str(self.system_tariff),
            "electricity_tax": str(self.electricity_tax),
            "total_price": str(self.total_price),
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Self:
        """Rebuild a record from a storage row.

        Derived columns (price_date_time, total_price) and storage-only
        columns such as `id` are ignored and recomputed.
        """
        data = {name: row[name] for name in cls.model_fields if name in row}
        for name in COMPONENT_FIELDS:
            data[name] = Decimal(str(data[name]))
        return cls.model_validate(data)
