# core/services/nlp_search_service.py
#
# Description:
# Natural-language search orchestrator.
# Embeds the query text, resolves an extracted place name to candidate regions,
# runs one vector-similarity query per region concurrently and merges the
# results. Branches are join-all: the first failure cancels the rest and fails
# the whole search.

import asyncio
import logging
from typing import List, Optional

from ..domain.exceptions import CatalogueDomainException, SearchTimeoutError
from ..domain.models import GeoRegion, ResponseEnvelope, SearchHits
from ..domain.query_decoder import QueryDecoder
from ..domain.query_model import SearchQueryModel
from ..domain.response_assembler import ResponseAssembler
from ..ports.repositories import ItemSearchRepository
from ..ports.services import EmbeddingService, GeocodingService

logger = logging.getLogger(__name__)

NOT_FOUND_DETAIL = "NLP Search Failed"


class NlpSearchService:
    """
    Core service for vector search with optional location scoping.

    Args:
        repository: Document-search backend port
        decoder: Query decoder used to build every branch query
        embedding_service: Embedding collaborator
        geocoding_service: Geocoding collaborator
        timeout: Deadline in seconds for the whole orchestration
        geo_field: Indexed geometry field that region bounding boxes filter on
    """

    def __init__(
        self,
        repository: ItemSearchRepository,
        decoder: QueryDecoder,
        embedding_service: EmbeddingService,
        geocoding_service: GeocodingService,
        timeout: float = 30.0,
        geo_field: str = "location.geometry",
    ):
        self.repository = repository
        self.decoder = decoder
        self.embedding_service = embedding_service
        self.geocoding_service = geocoding_service
        self.timeout = timeout
        self.geo_field = geo_field

    async def search(self, text: str) -> ResponseEnvelope:
        """
        Run a natural-language search.

        Args:
            text: Raw query text

        Returns:
            ResponseEnvelope with the concatenated branch results, or an
            item-not-found envelope when every branch came back empty

        Raises:
            EmbeddingUnavailableError: Embedding service failed
            LocationNotFoundError: A place was named but cannot be geocoded
            BackendUnavailableError: A branch query failed
            SearchTimeoutError: The deadline expired
        """
        try:
            return await asyncio.wait_for(self._orchestrate(text), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"NLP search timed out after {self.timeout}s for query '{text[:50]}'")
            raise SearchTimeoutError(self.timeout, {"query": text}, cause=e)

    async def _orchestrate(self, text: str) -> ResponseEnvelope:
        embedding = await self.embedding_service.embed(text)

        regions: List[Optional[GeoRegion]] = []
        if embedding.location:
            regions = list(await self.geocoding_service.geocode(embedding.location))
            logger.info(f"Location '{embedding.location}' resolved to {len(regions)} candidate region(s)")
            if not regions:
                logger.warning(f"No regions for '{embedding.location}', falling back to unscoped search")

        queries = [
            (region, self.decoder.decode_vector_search(embedding.vector, region, self.geo_field))
            for region in (regions or [None])
        ]
        branches = await self._run_branches(queries)

        envelope = ResponseAssembler.merge(branches, NOT_FOUND_DETAIL)
        logger.info(f"NLP search merged {len(branches)} branch(es) into {envelope.total_hits} results")
        return envelope

    async def _run_branches(self, queries) -> List[SearchHits]:
        """Execute all branch queries concurrently, collecting results in completion order."""
        tasks = [asyncio.create_task(self._run_branch(query, region)) for region, query in queries]
        results: List[SearchHits] = []
        try:
            for completed in asyncio.as_completed(tasks):
                results.append(await completed)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        return results

    async def _run_branch(self, query: SearchQueryModel, region: Optional[GeoRegion]) -> SearchHits:
        label = region.label() if region else "<no region>"
        try:
            hits = await self.repository.search(query)
        except CatalogueDomainException as e:
            e.details.setdefault("region", label)
            logger.error(f"NLP branch for region {label} failed: {e.error_code}")
            raise
        logger.debug(f"NLP branch for region {label} returned {len(hits.documents)} documents")
        return hits
