# core/ports/services.py
#
# Description:
# Port interfaces for the external collaborators used by natural-language search.
# These abstractions decouple the core domain from specific service implementations.

from abc import ABC, abstractmethod
from typing import List
from ..domain.models import EmbeddingResult, GeoRegion


class EmbeddingService(ABC):
    """Port for text embedding and place-name extraction."""

    @abstractmethod
    async def embed(self, text: str) -> EmbeddingResult:
        """
        Embed a query text.

        Returns:
            The query vector and the place name found in the text, if any

        Raises:
            EmbeddingUnavailableError: The service failed or returned no vector
        """
        pass


class GeocodingService(ABC):
    """Port for resolving place names to candidate regions."""

    @abstractmethod
    async def geocode(self, place: str) -> List[GeoRegion]:
        """
        Resolve a place name.

        Raises:
            LocationNotFoundError: The place cannot be resolved
        """
        pass
