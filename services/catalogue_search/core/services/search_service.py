# core/services/search_service.py
#
# Description:
# Core service for attribute/geo/text/temporal search, count, list-by-type and
# relationship search. Each operation decodes its request, executes the
# resulting query through the repository port and assembles the envelope.

import logging

from ..domain.models import (
    ListRequest,
    RelSearchRequest,
    ResponseEnvelope,
    SearchRequest,
)
from ..domain.query_decoder import AGGREGATION_NAME, QueryDecoder
from ..domain.response_assembler import ResponseAssembler
from ..ports.repositories import ItemSearchRepository

logger = logging.getLogger(__name__)


class SearchService:
    """
    Core service for single-query catalogue searches.

    Decode errors propagate before the repository is touched; repository
    failures propagate unchanged.
    """

    def __init__(self, repository: ItemSearchRepository, decoder: QueryDecoder):
        self.repository = repository
        self.decoder = decoder

    async def search(self, request: SearchRequest) -> ResponseEnvelope:
        """
        Execute a search request.

        Args:
            request: Normalized search request with its search type derived

        Returns:
            ResponseEnvelope with the requested page and the full hit count
        """
        query = self.decoder.decode_search(request)
        hits = await self.repository.search(query)
        logger.info(
            f"Search {request.search_type} returned {len(hits.documents)} of {hits.total_hits} hits"
        )
        return ResponseAssembler.from_hits(hits)

    async def count(self, request: SearchRequest) -> ResponseEnvelope:
        query = self.decoder.decode_count(request)
        total = await self.repository.count(query)
        logger.info(f"Count {request.search_type} matched {total} items")
        return ResponseAssembler.from_count(total)

    async def list_items(self, request: ListRequest) -> ResponseEnvelope:
        """List distinct values (or full documents for owner/cos) of an item type."""
        query = self.decoder.decode_list_by_type(request)
        hits = await self.repository.search(query)
        if query.aggregations:
            envelope = ResponseAssembler.from_buckets(hits, AGGREGATION_NAME)
        else:
            envelope = ResponseAssembler.from_hits(hits)
        logger.info(f"Listed {envelope.total_hits} {request.item_type} entries")
        return envelope

    async def rel_search(self, request: RelSearchRequest) -> ResponseEnvelope:
        """
        Find items under parents of a given type matching an attribute.

        Two dependent queries: parent ids first, then every item whose id is
        prefixed by one of them.
        """
        lookup = self.decoder.decode_rel_search_lookup(request)
        parents = await self.repository.search(lookup)
        parent_ids = parents.ids()
        if not parent_ids:
            logger.info(f"Relationship search found no {request.item_type.value} matching {request.attribute}")
            return ResponseAssembler.success([], 0)

        query = self.decoder.decode_rel_search(parent_ids, request.limit, request.offset)
        hits = await self.repository.search(query)
        logger.info(f"Relationship search under {len(parent_ids)} parents returned {hits.total_hits} hits")
        return ResponseAssembler.from_hits(hits)
