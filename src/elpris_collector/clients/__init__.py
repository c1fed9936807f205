"""API clients for Danish spot price sources."""

from elpris_collector.clients.base import FetchError, FetchErrorKind
from elpris_collector.clients.elprisenligenu import ElprisenLigenuClient

__all__ = ["ElprisenLigenuClient", "FetchError", "FetchErrorKind"]
