# core/services/relationship_service.py
#
# Description:
# Resolves relationship requests ("the resourceServer of this resourceGroup")
# by walking the static item hierarchy. Lookups along a path are dependent and
# therefore issued strictly one after another; each one is built by the decoder.

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..domain.exceptions import InvalidRelationshipError, ItemNotFoundError
from ..domain.item_hierarchy import CARRIED_FIELDS, TraversalDirection, TraversalPath, carriers_of, find_path
from ..domain.models import (
    ItemType,
    RELATIONSHIP_ALL,
    RELATIONSHIP_NAMES,
    RelationshipRequest,
    RelationshipResult,
    ResponseEnvelope,
)
from ..domain.query_decoder import QueryDecoder
from ..domain.response_assembler import ResponseAssembler
from ..ports.repositories import ItemSearchRepository

logger = logging.getLogger(__name__)


def field_values(documents: Iterable[Dict[str, Any]], field_name: str) -> List[str]:
    """Distinct values of a string or list field across documents, in first-seen order."""
    values: List[str] = []
    for doc in documents:
        raw = doc.get(field_name)
        if raw is None:
            continue
        for value in raw if isinstance(raw, list) else [raw]:
            if value not in values:
                values.append(value)
    return values


def item_type_of(document: Dict[str, Any]) -> Optional[ItemType]:
    """Concrete catalogue type from a document's ``type`` list."""
    types = document.get("type") or []
    if isinstance(types, str):
        types = [types]
    for urn in types:
        item_type = ItemType.from_urn(urn)
        if item_type is not None:
            return item_type
    return None


class RelationshipService:
    """
    Core service for relationship traversal.

    Resolution happens in three phases: fetch the anchor to learn its type,
    walk the hierarchy to collect the ids the final query needs, then run the
    final query. A walk that dead-ends yields an empty success.
    """

    def __init__(self, repository: ItemSearchRepository, decoder: QueryDecoder):
        self.repository = repository
        self.decoder = decoder

    async def resolve(self, request: RelationshipRequest) -> ResponseEnvelope:
        """
        Resolve a relationship request.

        Args:
            request: Anchor item id, relationship name and optional page window

        Returns:
            ResponseEnvelope with the related items

        Raises:
            InvalidRelationshipError: Unknown relationship or one that cannot be
                traversed from the anchor's type
            ItemNotFoundError: The anchor id matches no item, or an intermediate
                item referenced on an upward walk is missing
        """
        if request.relationship not in RELATIONSHIP_NAMES:
            raise InvalidRelationshipError(None, request.relationship)
        self.decoder.resolve_window(request.limit, request.offset)

        anchor = await self._fetch_anchor(request.item_id)
        anchor_type = item_type_of(anchor)
        if anchor_type is None:
            raise InvalidRelationshipError(None, request.relationship, {"id": request.item_id})

        result = await self._walk(request, anchor, anchor_type)
        if result is None:
            logger.info(f"Relationship {anchor_type.value}->{request.relationship} for {request.item_id} is empty")
            return ResponseAssembler.success([], 0)

        query = self.decoder.decode_relationship(result, request.limit, request.offset)
        hits = await self.repository.search(query)
        logger.info(
            f"Relationship {anchor_type.value}->{request.relationship} for {request.item_id} "
            f"returned {hits.total_hits} hits"
        )
        return ResponseAssembler.from_hits(hits)

    async def _fetch_anchor(self, item_id: str) -> Dict[str, Any]:
        hits = await self.repository.search(self.decoder.decode_item_lookup(item_id))
        if not hits.documents:
            raise ItemNotFoundError("anchor item does not exist", {"id": item_id})
        return hits.documents[0]

    async def _walk(
        self,
        request: RelationshipRequest,
        anchor: Dict[str, Any],
        anchor_type: ItemType,
    ) -> Optional[RelationshipResult]:
        relationship = request.relationship
        result = RelationshipResult(
            anchor_id=request.item_id,
            anchor_type=anchor_type,
            relationship=relationship,
        )

        if relationship == RELATIONSHIP_ALL:
            if anchor_type == ItemType.COS:
                raise InvalidRelationshipError(anchor_type.value, relationship)
            result.ancestor_ids = await self._collect_ancestors(anchor, anchor_type)
            if not result.ancestor_ids and not carriers_of(anchor_type):
                return None
            return result

        target = ItemType(relationship)
        path = find_path(anchor_type, target)
        if path is None:
            raise InvalidRelationshipError(anchor_type.value, relationship)
        logger.debug(f"Traversal {path.direction.value}: {[t.value for t in path.types]}")

        if path.direction == TraversalDirection.UP:
            ids = await self._walk_up(anchor, path)
            if not ids:
                return None
            result.ancestor_ids[target] = ids
        else:
            carrier, ids = await self._walk_down(request.item_id, path)
            if not ids:
                return None
            result.carrier_field = carrier.value
            result.carrier_ids = ids
        return result

    async def _walk_up(self, anchor: Dict[str, Any], path: TraversalPath) -> List[str]:
        """Follow carried fields from the anchor, fetching each intermediate level."""
        documents = [anchor]
        ids: List[str] = []
        for position, step in enumerate(path.types[1:], start=1):
            ids = field_values(documents, step.value)
            if not ids or position == path.hops:
                break
            hits = await self.repository.search(self.decoder.decode_items_by_id(ids))
            if not hits.documents:
                raise ItemNotFoundError(f"{step.value} for given item not found", {"ids": ids})
            documents = hits.documents
        return ids

    async def _walk_down(self, anchor_id: str, path: TraversalPath):
        """Collect ids of each intermediate level that carries the previous one."""
        ids = [anchor_id]
        previous = path.types[0]
        for step in path.intermediates:
            hits = await self.repository.search(self.decoder.decode_carrier_lookup(step, previous, ids))
            ids = hits.ids()
            previous = step
            if not ids:
                break
        return previous, ids

    async def _collect_ancestors(self, anchor: Dict[str, Any], anchor_type: ItemType) -> Dict[ItemType, List[str]]:
        """
        Ids of every type above the anchor.

        Parents are read from the documents at hand; a level is fetched only
        when its own parents are still unknown.
        """
        ancestors: Dict[ItemType, List[str]] = {}
        frontier = [(anchor_type, [anchor])]
        while frontier:
            item_type, documents = frontier.pop(0)
            added = []
            for parent in CARRIED_FIELDS[item_type]:
                if parent in ancestors:
                    continue
                ids = field_values(documents, parent.value)
                if ids:
                    ancestors[parent] = ids
                    added.append(parent)
            for parent in added:
                if all(grandparent in ancestors for grandparent in CARRIED_FIELDS[parent]):
                    continue
                hits = await self.repository.search(self.decoder.decode_items_by_id(ancestors[parent]))
                frontier.append((parent, hits.documents))
        return ancestors
