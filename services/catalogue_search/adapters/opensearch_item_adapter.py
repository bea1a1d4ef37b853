# adapters/opensearch_item_adapter.py
#
# Description:
# Adapter implementation for executing catalogue queries on OpenSearch.
# This adapter wraps the OpenSearch client to implement the ItemSearchRepository port.

import logging

from opensearchpy.exceptions import OpenSearchException

from core.domain.exceptions import BackendUnavailableError
from core.domain.models import SearchHits
from core.domain.query_model import SearchQueryModel
from core.ports.repositories import ItemSearchRepository
from adapters.mappers.opensearch_query_mapper import OpenSearchQueryMapper

logger = logging.getLogger(__name__)


class OpenSearchItemAdapter(ItemSearchRepository):
    """
    Adapter that runs query models against the catalogue index.

    Query serialization is delegated to OpenSearchQueryMapper; backend errors
    are reported as BackendUnavailableError. No retries are attempted here.
    """

    def __init__(self, opensearch_client):
        self.client = opensearch_client

    async def search(self, query: SearchQueryModel) -> SearchHits:
        """Execute a search or aggregation query."""
        body = OpenSearchQueryMapper.to_search_body(query)
        try:
            response = await self.client.search(body)
        except OpenSearchException as e:
            logger.error(f"OpenSearch search failed: {e}")
            raise BackendUnavailableError(str(e), {"operation": "search"}, cause=e)

        hits = OpenSearchQueryMapper.response_to_hits(response)
        if hits.is_partial:
            logger.warning(
                f"OpenSearch returned partial results: timed_out={hits.timed_out}, "
                f"failed_shards={hits.failed_shards}"
            )
        return hits

    async def count(self, query: SearchQueryModel) -> int:
        body = OpenSearchQueryMapper.to_count_body(query)
        try:
            return await self.client.count(body)
        except OpenSearchException as e:
            logger.error(f"OpenSearch count failed: {e}")
            raise BackendUnavailableError(str(e), {"operation": "count"}, cause=e)

    async def ping(self) -> bool:
        return await self.client.health_check()
