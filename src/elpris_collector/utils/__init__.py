"""Utility functions for the price collector."""

from elpris_collector.utils.time import (
    MARKET_TZ,
    get_market_now,
    get_market_today,
    get_market_tomorrow,
    to_market_time,
)

__all__ = ["MARKET_TZ", "get_market_now", "get_market_today", "get_market_tomorrow", "to_market_time"]
