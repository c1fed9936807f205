"""Danish Spot Price Collector - hourly DK1/DK2 electricity prices."""

from elpris_collector.clients.elprisenligenu import ElprisenLigenuClient
from elpris_collector.ingestion import IngestionCoordinator
from elpris_collector.models.price import PriceRecord, Region
from elpris_collector.normalizer import PriceNormalizer

__version__ = "0.1.0"
__all__ = ["ElprisenLigenuClient", "IngestionCoordinator", "PriceNormalizer", "PriceRecord", "Region"]
