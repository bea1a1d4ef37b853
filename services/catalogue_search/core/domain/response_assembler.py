# core/domain/response_assembler.py
#
# Description:
# Builds the uniform response envelope from backend outcomes.
# Plain result sets, aggregation buckets, merged relationship lists and merged
# NLP branch results all end up in the same ResponseEnvelope shape.

from typing import Any, List, Optional

from .models import ResponseEnvelope, ResponseStatus, SearchHits

URN_SUCCESS = "urn:dx:cat:Success"
URN_PARTIAL = "urn:dx:cat:PartialContent"
URN_ITEM_NOT_FOUND = "urn:dx:cat:ItemNotFound"

TITLE_SUCCESS = "Success"
TITLE_PARTIAL = "Partial Content"
TITLE_ITEM_NOT_FOUND = "Item not found"


class ResponseAssembler:
    """Static constructors for ResponseEnvelope."""

    @staticmethod
    def success(results: List[Any], total_hits: int, detail: Optional[str] = None) -> ResponseEnvelope:
        return ResponseEnvelope(
            type=URN_SUCCESS,
            title=TITLE_SUCCESS,
            status=ResponseStatus.SUCCESS,
            total_hits=total_hits,
            results=list(results),
            detail=detail,
        )

    @staticmethod
    def partial(results: List[Any], total_hits: int, detail: Optional[str] = None) -> ResponseEnvelope:
        return ResponseEnvelope(
            type=URN_PARTIAL,
            title=TITLE_PARTIAL,
            status=ResponseStatus.PARTIAL,
            total_hits=total_hits,
            results=list(results),
            detail=detail,
        )

    @staticmethod
    def item_not_found(detail: str) -> ResponseEnvelope:
        return ResponseEnvelope(
            type=URN_ITEM_NOT_FOUND,
            title=TITLE_ITEM_NOT_FOUND,
            status=ResponseStatus.FAILED,
            total_hits=0,
            results=[],
            detail=detail,
        )

    @staticmethod
    def from_hits(hits: SearchHits) -> ResponseEnvelope:
        """
        Envelope for a document result set.

        ``totalHits`` is the backend's full count, so a page past the end is a
        success with no results.
        """
        if hits.is_partial and hits.documents:
            return ResponseAssembler.partial(
                hits.documents,
                hits.total_hits,
                detail=f"incomplete result: timed_out={hits.timed_out}, failed_shards={hits.failed_shards}",
            )
        return ResponseAssembler.success(hits.documents, hits.total_hits)

    @staticmethod
    def from_buckets(hits: SearchHits, aggregation_name: str) -> ResponseEnvelope:
        buckets = hits.buckets.get(aggregation_name, [])
        if hits.is_partial and buckets:
            return ResponseAssembler.partial(buckets, len(buckets))
        return ResponseAssembler.success(buckets, len(buckets))

    @staticmethod
    def from_count(total_hits: int) -> ResponseEnvelope:
        return ResponseAssembler.success([], total_hits)

    @staticmethod
    def merge(branches: List[SearchHits], not_found_detail: str) -> ResponseEnvelope:
        """
        Concatenate branch results in the given order.

        An empty union is reported as item-not-found, not as an error.
        """
        documents = [doc for branch in branches for doc in branch.documents]
        if not documents:
            return ResponseAssembler.item_not_found(not_found_detail)
        if any(branch.is_partial for branch in branches):
            return ResponseAssembler.partial(documents, len(documents))
        return ResponseAssembler.success(documents, len(documents))
