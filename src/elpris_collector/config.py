"""Configuration for the price collector.

Values are read from environment variables (a `.env` file is loaded first),
falling back to the defaults below. Tariffs and taxes are a fixed value
object handed to the normalizer rather than module-level constants.
"""

import os
from datetime import time
from decimal import Decimal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from elpris_collector.models.price import Region

# Load environment variables
load_dotenv()

DEFAULT_API_BASE_URL = "https://www.elprisenligenu.dk/api/v1/prices"
DEFAULT_TIMEZONE = "Europe/Copenhagen"


def _parse_time(value: str) -> time:
    """Parse a HH:MM string."""
    hour, _, minute = value.strip().partition(":")
    return time(hour=int(hour), minute=int(minute or 0))


class TariffConfig(BaseModel):
    """Fixed tariffs and tax added on top of the spot price, in DKK/kWh."""

    model_config = ConfigDict(frozen=True)

    transmission_tariff: Decimal = Decimal("0.058")
    system_tariff: Decimal = Decimal("0.0125")
    electricity_tax: Decimal = Decimal("0.090")

    @classmethod
    def from_env(cls) -> "TariffConfig":
        defaults = cls()
        return cls(
            transmission_tariff=Decimal(
                os.getenv("ELPRIS_TRANSMISSION_TARIFF", str(defaults.transmission_tariff))
            ),
            system_tariff=Decimal(os.getenv("ELPRIS_SYSTEM_TARIFF", str(defaults.system_tariff))),
            electricity_tax=Decimal(
                os.getenv("ELPRIS_ELECTRICITY_TAX", str(defaults.electricity_tax))
            ),
        )


class ScheduleConfig(BaseModel):
    """Local wall-clock times for the scheduled jobs."""

    model_config = ConfigDict(frozen=True)

    fetch_today_at: time = time(13, 5)
    fetch_tomorrow_at: time = time(13, 10)
    backup_at: time = time(13, 15)
    cleanup_at: time = time(0, 0)
    # Nord Pool publishes next-day prices around 13:00 CET
    tomorrow_publish_hour: int = Field(default=13, ge=0, le=23)
    retention_days: int = Field(default=30, ge=1)

    @classmethod
    def from_env(cls) -> "ScheduleConfig":
        defaults = cls()
        return cls(
            fetch_today_at=_parse_time(
                os.getenv("ELPRIS_FETCH_TODAY_AT", defaults.fetch_today_at.strftime("%H:%M"))
            ),
            fetch_tomorrow_at=_parse_time(
                os.getenv("ELPRIS_FETCH_TOMORROW_AT", defaults.fetch_tomorrow_at.strftime("%H:%M"))
            ),
            backup_at=_parse_time(
                os.getenv("ELPRIS_BACKUP_AT", defaults.backup_at.strftime("%H:%M"))
            ),
            cleanup_at=_parse_time(
                os.getenv("ELPRIS_CLEANUP_AT", defaults.cleanup_at.strftime("%H:%M"))
            ),
            tomorrow_publish_hour=int(
                os.getenv("ELPRIS_TOMORROW_PUBLISH_HOUR", defaults.tomorrow_publish_hour)
            ),
            retention_days=int(os.getenv("ELPRIS_RETENTION_DAYS", defaults.retention_days)),
        )


class Settings(BaseModel):
    """Top-level settings for the collector.

    Example:
        settings = Settings.from_env()
        normalizer = PriceNormalizer(settings.tariffs, settings.timezone)
    """

    model_config = ConfigDict(frozen=True)

    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout: float = Field(default=30.0, gt=0)
    regions: tuple[Region, ...] = (Region.DK1, Region.DK2)
    timezone: str = DEFAULT_TIMEZONE
    store: str = "supabase"
    tariffs: TariffConfig = Field(default_factory=TariffConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)

    @field_validator("regions")
    @classmethod
    def validate_regions(cls, v: tuple[Region, ...]) -> tuple[Region, ...]:
        if not v:
            raise ValueError("At least one region must be configured")
        # Keep order, drop repeats
        return tuple(dict.fromkeys(v))

    @field_validator("store")
    @classmethod
    def validate_store(cls, v: str) -> str:
        if v not in ("supabase", "memory"):
            raise ValueError(f"Unknown store backend: {v}")
        return v

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ELPRIS_* environment variables."""
        defaults = cls()
        regions_env = os.getenv("ELPRIS_REGIONS")
        regions = (
            tuple(Region(r.strip().upper()) for r in regions_env.split(",") if r.strip())
            if regions_env
            else defaults.regions
        )
        return cls(
            api_base_url=os.getenv("ELPRIS_API_BASE_URL", defaults.api_base_url),
            request_timeout=float(os.getenv("ELPRIS_REQUEST_TIMEOUT", defaults.request_timeout)),
            regions=regions,
            timezone=os.getenv("ELPRIS_TIMEZONE", defaults.timezone),
            store=os.getenv("ELPRIS_STORE", defaults.store),
            tariffs=TariffConfig.from_env(),
            schedule=ScheduleConfig.from_env(),
        )
