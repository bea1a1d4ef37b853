# store/opensearch/client.py
#
# Description:
# This module provides the async OpenSearch connection for the catalogue index.
# It owns the AsyncOpenSearch instance and exposes the raw search, count and
# health calls used by the item search adapter.

import logging
from typing import Any, Dict, Optional

from opensearchpy import AsyncOpenSearch

from app.config.settings import settings

logger = logging.getLogger(__name__)


class OpenSearchClient:
    """Async OpenSearch client bound to the catalogue index."""

    def __init__(self, client: Optional[AsyncOpenSearch] = None, index_name: Optional[str] = None):
        """
        Initialize the client.

        Args:
            client: Pre-built AsyncOpenSearch instance; built from settings when omitted
            index_name: Catalogue index name; defaults to settings.opensearch_index
        """
        self.client = client or AsyncOpenSearch(
            hosts=[{
                'host': settings.opensearch_host,
                'port': settings.opensearch_port
            }],
            http_auth=(settings.opensearch_username, settings.opensearch_password),
            use_ssl=settings.opensearch_use_ssl,
            verify_certs=settings.opensearch_verify_certs,
            ssl_assert_hostname=False,
            ssl_show_warn=False,
            timeout=settings.opensearch_timeout,
        )
        self.index_name = index_name or settings.opensearch_index

    async def search(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Run a _search request against the catalogue index."""
        return await self.client.search(index=self.index_name, body=body)

    async def count(self, body: Dict[str, Any]) -> int:
        response = await self.client.count(index=self.index_name, body=body)
        return int(response.get("count", 0))

    async def health_check(self) -> bool:
        """Check if OpenSearch is healthy and accessible."""
        try:
            health = await self.client.cluster.health()
            return health["status"] in ["green", "yellow"]
        except Exception as e:
            logger.error(f"OpenSearch health check failed: {e}")
            return False

    async def close(self):
        await self.client.close()
