"""Data models for Danish spot price data."""

from elpris_collector.models.price import PriceRecord, RawSample, Region
from elpris_collector.models.report import IngestionReport, RegionReport, RegionStatus

__all__ = ["Region", "RawSample", "PriceRecord", "IngestionReport", "RegionReport", "RegionStatus"]
