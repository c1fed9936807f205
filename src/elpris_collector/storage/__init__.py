"""Storage backends for price records."""

from elpris_collector.storage.base import PersistenceError, PriceStore
from elpris_collector.storage.memory import InMemoryPriceStore

__all__ = ["PriceStore", "PersistenceError", "InMemoryPriceStore", "create_store"]


def create_store(backend: str) -> PriceStore:
    """Build the configured store backend ("supabase" or "memory")."""
    if backend == "memory":
        return InMemoryPriceStore()
    if backend == "supabase":
        # Imported lazily so the in-memory backend works without credentials
        from elpris_collector.storage.supabase import SupabasePriceStore

        return SupabasePriceStore()
    raise ValueError(f"Unknown store backend: {backend}")
