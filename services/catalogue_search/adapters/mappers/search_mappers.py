# adapters/mappers/search_mappers.py
#
# Description:
# Mappers to convert between API query parameters and domain requests, and from
# domain envelopes back to API responses.
# The catalogue's bracket syntax is parsed here, and the request's search type
# is derived once, so the core never inspects raw strings.

import json
import re
from dataclasses import replace
from typing import Any, List, Optional

from app.api.schemas.common import CatalogueResponse
from app.api.schemas.relationship import RelSearchParams, RelationshipParams
from app.api.schemas.search import ListParams, SearchParams

from core.domain.exceptions import InvalidGeometryError, InvalidSearchRequestError
from core.domain.models import (
    Criterion,
    CriterionType,
    GeoCriterion,
    GeoRelation,
    GeometryType,
    ItemType,
    ListRequest,
    RangeRelation,
    RelSearchRequest,
    RelationshipRequest,
    ResponseEnvelope,
    ResponseStatus,
    SearchRequest,
    derive_search_type,
)

_GROUP_PATTERN = re.compile(r"\[([^\[\]]*)\]")

DEFAULT_TIME_PROPERTY = "itemCreatedAt"

_STATUS_CODES = {
    ResponseStatus.SUCCESS: 200,
    ResponseStatus.PARTIAL: 206,
    ResponseStatus.FAILED: 404,
}


def _clean(token: str) -> str:
    return token.strip().strip('"').strip("'").strip()


def parse_list(raw: Optional[str]) -> List[str]:
    """Parse ``[a,b]`` (or a bare ``a``) into a list of strings."""
    if raw is None:
        return []
    text = raw.strip()
    if text.startswith("[") and text.endswith("]"):
        text = text[1:-1]
    return [token for token in (_clean(part) for part in text.split(",")) if token]


def parse_nested_list(raw: Optional[str]) -> List[List[str]]:
    """Parse ``[[a,b],[c]]`` into ``[["a", "b"], ["c"]]``; a flat list becomes one group."""
    if raw is None:
        return []
    text = raw.strip()
    if text.startswith("[["):
        return [parse_list(group) for group in _GROUP_PATTERN.findall(text[1:-1])]
    return [parse_list(text)] if parse_list(text) else []


def parse_coordinates(raw: Optional[str]) -> Any:
    if raw is None:
        raise InvalidGeometryError("missing coordinates")
    try:
        return json.loads(raw)
    except ValueError:
        raise InvalidGeometryError("coordinates are not a JSON array", {"coordinates": raw})


def _parse_enum(enum_cls, raw: str, error):
    for member in enum_cls:
        if member.value.lower() == raw.strip().lower():
            return member
    raise error


class SearchMapper:
    """
    Mapper class for converting between API parameters and domain models.

    This mapper acts as an anti-corruption layer, ensuring that changes
    in the API layer don't affect the core domain logic.
    """

    @staticmethod
    def params_to_search_request(params: SearchParams, instance: Optional[str] = None) -> SearchRequest:
        """Convert raw search parameters to a normalized SearchRequest."""
        criteria: List[Criterion] = []

        # Attribute criteria: one property per value group
        properties = parse_list(params.property)
        value_groups = parse_nested_list(params.value)
        if properties or value_groups:
            if len(properties) != len(value_groups):
                raise InvalidSearchRequestError(
                    "property and value lists differ in length",
                    {"properties": len(properties), "values": len(value_groups)},
                )
            for name, values in zip(properties, value_groups):
                criteria.append(Criterion(CriterionType.TERM, name, values))

        if params.timerel:
            relation = _parse_enum(
                RangeRelation, params.timerel,
                InvalidSearchRequestError(f"unknown timerel '{params.timerel}'"),
            )
            bounds = [v for v in (params.time, params.endtime) if v is not None]
            criteria.append(Criterion(
                CriterionType.TEMPORAL,
                params.timeproperty or DEFAULT_TIME_PROPERTY,
                bounds,
                relation,
            ))

        if params.rangerel:
            relation = _parse_enum(
                RangeRelation, params.rangerel,
                InvalidSearchRequestError(f"unknown rangerel '{params.rangerel}'"),
            )
            if not params.rangeproperty:
                raise InvalidSearchRequestError("rangerel requires rangeproperty")
            criteria.append(Criterion(
                CriterionType.RANGE,
                params.rangeproperty,
                parse_list(params.rangevalue),
                relation,
            ))

        geo = None
        if params.geoproperty or params.georel or params.geometry or params.coordinates:
            geo = SearchMapper._params_to_geo(params)

        request = SearchRequest(
            criteria=criteria,
            geo=geo,
            text=params.q.strip() if params.q and params.q.strip() else None,
            tags=parse_list(params.tags),
            response_filter=parse_list(params.filter),
            instance=instance or None,
            limit=params.limit,
            offset=params.offset,
            page=params.page,
        )
        return replace(request, search_type=derive_search_type(request))

    @staticmethod
    def _params_to_geo(params: SearchParams) -> GeoCriterion:
        if not (params.geoproperty and params.georel and params.geometry):
            raise InvalidGeometryError("geo search needs geoproperty, georel, geometry and coordinates")
        relation = _parse_enum(
            GeoRelation, params.georel,
            InvalidGeometryError(f"unsupported georel '{params.georel}'"),
        )
        geometry = _parse_enum(
            GeometryType, params.geometry,
            InvalidGeometryError(f"unsupported geometry '{params.geometry}'"),
        )
        return GeoCriterion(
            property=params.geoproperty,
            relation=relation,
            geometry=geometry,
            coordinates=parse_coordinates(params.coordinates),
            max_distance=params.max_distance,
        )

    @staticmethod
    def params_to_list_request(item_type: str, params: ListParams, instance: Optional[str] = None) -> ListRequest:
        return ListRequest(item_type=item_type, instance=instance or None, limit=params.limit, offset=params.offset)

    @staticmethod
    def params_to_relationship_request(params: RelationshipParams) -> RelationshipRequest:
        return RelationshipRequest(
            item_id=params.id,
            relationship=params.rel,
            limit=params.limit,
            offset=params.offset,
        )

    @staticmethod
    def params_to_rel_search_request(params: RelSearchParams) -> RelSearchRequest:
        """Convert ``relationship=[type.attribute]&value=[[v]]`` to a RelSearchRequest."""
        relationships = parse_list(params.relationship)
        if len(relationships) != 1 or "." not in relationships[0]:
            raise InvalidSearchRequestError(
                "relationship must be a single <type>.<attribute>",
                {"relationship": params.relationship},
            )
        type_name, attribute = relationships[0].split(".", 1)
        item_type = ItemType.from_name(type_name)
        if item_type is None:
            raise InvalidSearchRequestError(f"unknown item type '{type_name}'")
        value_groups = parse_nested_list(params.value)
        return RelSearchRequest(
            item_type=item_type,
            attribute=attribute,
            values=value_groups[0] if value_groups else [],
            limit=params.limit,
            offset=params.offset,
        )

    @staticmethod
    def envelope_to_api_response(envelope: ResponseEnvelope) -> CatalogueResponse:
        return CatalogueResponse(
            type=envelope.type,
            title=envelope.title,
            status=envelope.status.value,
            total_hits=envelope.total_hits,
            results=envelope.results,
            detail=envelope.detail,
        )

    @staticmethod
    def status_code(envelope: ResponseEnvelope) -> int:
        return _STATUS_CODES[envelope.status]
