# adapters/api_facade.py
#
# Description:
# API Facade that provides a clean interface for the web layer to interact with the domain.
# This facade handles all the mapping between API parameters, domain requests and
# API responses. Domain exceptions are not caught here; the exception handlers
# registered on the application turn them into error responses.

import logging
from typing import Optional, Tuple

from app.api.schemas.common import CatalogueResponse
from app.api.schemas.relationship import RelSearchParams, RelationshipParams
from app.api.schemas.search import ListParams, SearchParams
from infrastructure.container import get_container
from adapters.mappers.search_mappers import SearchMapper
from core.domain.models import ResponseEnvelope

logger = logging.getLogger(__name__)

ApiResult = Tuple[int, CatalogueResponse]


class CatalogueApiFacade:
    """
    Facade for catalogue search operations that bridges the API layer and domain layer.

    This facade:
    1. Converts API parameters to domain requests
    2. Delegates to core services
    3. Converts envelopes back to API responses with their HTTP status
    """

    def __init__(self):
        container = get_container()
        self.search_service = container.get_search_service()
        self.relationship_service = container.get_relationship_service()
        self.nlp_search_service = container.get_nlp_search_service()
        self.repository = container.get_item_repository()

    @staticmethod
    def _to_api(envelope: ResponseEnvelope) -> ApiResult:
        return SearchMapper.status_code(envelope), SearchMapper.envelope_to_api_response(envelope)

    async def search(self, params: SearchParams, instance: Optional[str] = None) -> ApiResult:
        """
        Execute a search request.

        Args:
            params: Raw search parameters
            instance: Value of the instance header, if any

        Returns:
            HTTP status code and API response
        """
        request = SearchMapper.params_to_search_request(params, instance)
        logger.info(f"Executing search: search_type={request.search_type}, limit={request.limit}")
        return self._to_api(await self.search_service.search(request))

    async def count(self, params: SearchParams, instance: Optional[str] = None) -> ApiResult:
        request = SearchMapper.params_to_search_request(params, instance)
        return self._to_api(await self.search_service.count(request))

    async def nlp_search(self, text: str) -> ApiResult:
        logger.info(f"Executing NLP search: query='{text[:50]}'")
        return self._to_api(await self.nlp_search_service.search(text))

    async def list_items(self, item_type: str, params: ListParams, instance: Optional[str] = None) -> ApiResult:
        request = SearchMapper.params_to_list_request(item_type, params, instance)
        return self._to_api(await self.search_service.list_items(request))

    async def relationship(self, params: RelationshipParams) -> ApiResult:
        request = SearchMapper.params_to_relationship_request(params)
        logger.info(f"Resolving relationship '{request.relationship}' for {request.item_id}")
        return self._to_api(await self.relationship_service.resolve(request))

    async def rel_search(self, params: RelSearchParams) -> ApiResult:
        request = SearchMapper.params_to_rel_search_request(params)
        return self._to_api(await self.search_service.rel_search(request))

    async def backend_healthy(self) -> bool:
        return await self.repository.ping()


# Global facade instance
_catalogue_facade = None


def get_catalogue_facade() -> CatalogueApiFacade:
    """Get the global catalogue facade instance."""
    global _catalogue_facade
    if _catalogue_facade is None:
        _catalogue_facade = CatalogueApiFacade()
    return _catalogue_facade
