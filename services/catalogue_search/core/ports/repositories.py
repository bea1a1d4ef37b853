# core/ports/repositories.py
#
# Description:
# Port interface for the document-search backend holding catalogue items.
# The core hands it backend-agnostic query models and gets raw hits back.

from abc import ABC, abstractmethod
from ..domain.models import SearchHits
from ..domain.query_model import SearchQueryModel


class ItemSearchRepository(ABC):
    """Port for executing catalogue queries."""

    @abstractmethod
    async def search(self, query: SearchQueryModel) -> SearchHits:
        """Execute a search or aggregation query."""
        pass

    @abstractmethod
    async def count(self, query: SearchQueryModel) -> int:
        """Count documents matching the query."""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Check that the backend is reachable."""
        pass
