"""Supabase storage backend for price records.

Rows live in the `electricity_prices` table (see sql/schema.sql), which
carries a unique constraint on (region, price_date_time). Inserts are
upserts that ignore conflicting rows, so concurrent ingestion runs
cannot create duplicates.
"""

import logging
import os
from datetime import date, datetime
from typing import Any

from dotenv import load_dotenv
from supabase import Client, create_client

from elpris_collector.models.price import PriceRecord, Region
from elpris_collector.storage.base import PersistenceError

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

TABLE = "electricity_prices"
CONFLICT_COLUMNS = "region,price_date_time"


def _insert_row(record: PriceRecord) -> dict[str, Any]:
    """Row for insertion. total_price is a generated column in the table."""
    row = record.to_row()
    del row["total_price"]
    return row


class SupabasePriceStore:
    """PriceStore backed by a Supabase (PostgREST) table.

    Every backend failure is logged and re-raised as PersistenceError.

    Example:
        store = SupabasePriceStore()
        inserted = store.save_all(records)
    """

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        client: Client | None = None,
    ):
        """Initialize Supabase client.

        Args:
            url: Supabase project URL. Defaults to SUPABASE_URL env var.
            key: Supabase service key. Defaults to SUPABASE_SERVICE_KEY env var.
            client: Pre-built client, mainly for tests.
        """
        if client is not None:
            self._client = client
            return

        self.url = url or os.getenv("SUPABASE_URL")
        self.key = key or os.getenv("SUPABASE_SERVICE_KEY")

        if not self.url or not self.key:
            raise ValueError(
                "Supabase credentials required. Set SUPABASE_URL and SUPABASE_SERVICE_KEY "
                "environment variables or pass them directly."
            )

        self._client: Client = create_client(self.url, self.key)

    def _execute(self, operation: str, query: Any) -> list[dict[str, Any]]:
        """Run a query builder and return its rows."""
        try:
            return query.execute().data or []
        except Exception as e:
            logger.error(f"Supabase {operation} failed: {e}")
            raise PersistenceError(f"{operation} failed: {e}", operation=operation) from e

    def exists(self, region: Region, price_date_time: datetime) -> bool:
        rows = self._execute(
            "exists",
            self._client.table(TABLE)
            .select("id")
            .eq("region", region.value)
            .eq("price_date_time", price_date_time.isoformat())
            .limit(1),
        )
        return bool(rows)

    def save_all(self, records: list[PriceRecord]) -> list[PriceRecord]:
        """Insert records, skipping any that conflict with existing rows.

        Returns:
            Records that were actually inserted
        """
        if not records:
            return []

        rows = self._execute(
            "save_all",
            self._client.table(TABLE).upsert(
                [_insert_row(r) for r in records],
                on_conflict=CONFLICT_COLUMNS,
                ignore_duplicates=True,
            ),
        )

        inserted = [PriceRecord.from_row(row) for row in rows]
        logger.info(f"Saved {len(inserted)} of {len(records)} price records")
        return inserted

    def find_by_region_and_date(self, region: Region, price_date: date) -> list[PriceRecord]:
        rows = self._execute(
            "find_by_region_and_date",
            self._client.table(TABLE)
            .select("*")
            .eq("region", region.value)
            .eq("price_date", price_date.isoformat())
            .order("price_date_time"),
        )
        return [PriceRecord.from_row(row) for row in rows]

    def delete_by_region_and_date(self, region: Region, price_date: date) -> int:
        rows = self._execute(
            "delete_by_region_and_date",
            self._client.table(TABLE)
            .delete()
            .eq("region", region.value)
            .eq("price_date", price_date.isoformat()),
        )
        logger.info(f"Deleted {len(rows)} price records for {region.value} on {price_date}")
        return len(rows)

    def delete_older_than(self, cutoff: date) -> int:
        rows = self._execute(
            "delete_older_than",
            self._client.table(TABLE).delete().lt("price_date", cutoff.isoformat()),
        )
        logger.info(f"Deleted {len(rows)} price records older than {cutoff}")
        return len(rows)
