# infrastructure/container.py
#
# Description:
# Dependency injection container for the catalogue search service.
#
# This is the COMPOSITION ROOT of the application - the only place where
# we wire together all the dependencies. It belongs in the infrastructure
# layer because it knows about concrete implementations.

import logging
from typing import Optional

from core.domain.query_decoder import QueryDecoder
from core.ports.repositories import ItemSearchRepository
from core.ports.services import EmbeddingService, GeocodingService
from core.services.nlp_search_service import NlpSearchService
from core.services.relationship_service import RelationshipService
from core.services.search_service import SearchService

logger = logging.getLogger(__name__)


# Lazy imports to keep the core free of adapter imports at module load
def _lazy_import_adapters():
    """Lazy import adapters to maintain dependency direction."""
    from adapters.opensearch_item_adapter import OpenSearchItemAdapter
    from adapters.nlp_embedding_adapter import NlpEmbeddingAdapter
    from adapters.pelias_geocoding_adapter import PeliasGeocodingAdapter
    from infrastructure.store.opensearch.client import OpenSearchClient
    from app.config.settings import settings

    return {
        'OpenSearchItemAdapter': OpenSearchItemAdapter,
        'NlpEmbeddingAdapter': NlpEmbeddingAdapter,
        'PeliasGeocodingAdapter': PeliasGeocodingAdapter,
        'OpenSearchClient': OpenSearchClient,
        'settings': settings
    }


class DIContainer:
    """
    Dependency Injection Container for the catalogue search service.

    It follows the Ports & Adapters pattern by:
    1. Creating concrete implementations (adapters) for the ports
    2. Injecting the backend client and collaborators into the core services
    3. Managing the lifecycle of HTTP sessions and the OpenSearch connection
    """

    def __init__(self):
        self._opensearch_client = None
        self._item_repository: Optional[ItemSearchRepository] = None
        self._embedding_service: Optional[EmbeddingService] = None
        self._geocoding_service: Optional[GeocodingService] = None
        self._query_decoder: Optional[QueryDecoder] = None
        self._search_service: Optional[SearchService] = None
        self._relationship_service: Optional[RelationshipService] = None
        self._nlp_search_service: Optional[NlpSearchService] = None

    def get_opensearch_client(self):
        if self._opensearch_client is None:
            adapters = _lazy_import_adapters()
            self._opensearch_client = adapters['OpenSearchClient']()
            logger.info(f"Created OpenSearch client for index '{self._opensearch_client.index_name}'")
        return self._opensearch_client

    def get_item_repository(self) -> ItemSearchRepository:
        if self._item_repository is None:
            adapters = _lazy_import_adapters()
            self._item_repository = adapters['OpenSearchItemAdapter'](self.get_opensearch_client())
            logger.info("Created OpenSearch item repository")
        return self._item_repository

    def get_embedding_service(self) -> EmbeddingService:
        if self._embedding_service is None:
            adapters = _lazy_import_adapters()
            settings = adapters['settings']
            self._embedding_service = adapters['NlpEmbeddingAdapter'](
                nlp_service_url=settings.nlp_service_url,
                timeout=settings.nlp_service_timeout,
            )
        return self._embedding_service

    def get_geocoding_service(self) -> GeocodingService:
        if self._geocoding_service is None:
            adapters = _lazy_import_adapters()
            settings = adapters['settings']
            self._geocoding_service = adapters['PeliasGeocodingAdapter'](
                geocoding_url=settings.geocoding_url,
                timeout=settings.geocoding_timeout,
            )
        return self._geocoding_service

    def get_query_decoder(self) -> QueryDecoder:
        if self._query_decoder is None:
            settings = _lazy_import_adapters()['settings']
            self._query_decoder = QueryDecoder(
                text_search_fields=settings.text_search_fields,
                vector_field=settings.vector_field,
                default_page_size=settings.default_page_size,
                max_result_window=settings.max_result_window,
            )
        return self._query_decoder

    def get_search_service(self) -> SearchService:
        if self._search_service is None:
            self._search_service = SearchService(
                repository=self.get_item_repository(),
                decoder=self.get_query_decoder(),
            )
            logger.info("Created search service with injected dependencies")
        return self._search_service

    def get_relationship_service(self) -> RelationshipService:
        if self._relationship_service is None:
            self._relationship_service = RelationshipService(
                repository=self.get_item_repository(),
                decoder=self.get_query_decoder(),
            )
            logger.info("Created relationship service with injected dependencies")
        return self._relationship_service

    def get_nlp_search_service(self) -> NlpSearchService:
        if self._nlp_search_service is None:
            settings = _lazy_import_adapters()['settings']
            self._nlp_search_service = NlpSearchService(
                repository=self.get_item_repository(),
                decoder=self.get_query_decoder(),
                embedding_service=self.get_embedding_service(),
                geocoding_service=self.get_geocoding_service(),
                timeout=settings.nlp_search_timeout,
                geo_field=settings.geo_field,
            )
            logger.info("Created NLP search service with injected dependencies")
        return self._nlp_search_service

    async def close(self):
        """Close HTTP sessions and the OpenSearch connection."""
        for resource in (self._embedding_service, self._geocoding_service, self._opensearch_client):
            if resource is not None:
                await resource.close()
        logger.info("Closed container resources")

    def reset(self):
        """Reset all cached instances (useful for testing)."""
        self._opensearch_client = None
        self._item_repository = None
        self._embedding_service = None
        self._geocoding_service = None
        self._query_decoder = None
        self._search_service = None
        self._relationship_service = None
        self._nlp_search_service = None
        logger.info("Reset DI container")


# Global container instance
_container = DIContainer()


def get_container() -> DIContainer:
    """Get the global DI container instance."""
    return _container


async def cleanup_container():
    """Release container resources on shutdown."""
    await _container.close()
    _container.reset()


def reset_container():
    """Reset the global container (mainly for testing)."""
    _container.reset()
