# core/domain/query_decoder.py
#
# Description:
# Translates normalized catalogue requests into QueryModel trees.
# Every method is a pure function of its input and the decoder's configuration;
# nothing here talks to a backend. Invalid input is rejected with a typed domain
# exception before any query is issued.

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

from .exceptions import (
    InvalidGeometryError,
    InvalidRelationshipError,
    InvalidSearchRequestError,
    InvalidTemporalValueError,
    MissingSearchTypeError,
)
from .item_hierarchy import CARRIED_FIELDS
from .models import (
    Criterion,
    CriterionType,
    GeoCriterion,
    GeoRegion,
    GeoRelation,
    GeometryType,
    ItemType,
    ListRequest,
    NO_SEARCH_TYPE,
    RangeRelation,
    RelSearchRequest,
    RelationshipResult,
    RELATIONSHIP_ALL,
    SearchRequest,
    SearchType,
)
from .query_model import Aggregation, BoolQueryBuilder, QueryModel, SearchQueryModel

logger = logging.getLogger(__name__)

# Field naming conventions of the catalogue index
ID_KEYWORD = "id.keyword"
TYPE_KEYWORD = "type.keyword"
INSTANCE_KEYWORD = "instance.keyword"
TAGS_KEYWORD = "tags.keyword"
KEYWORD_SUFFIX = ".keyword"
GEOCODED_FIELD_PREFIX = "_geosummary._geocoded.results."

AGGREGATION_NAME = "results"

# Geo-shape types as understood by the backend
SHAPE_ENVELOPE = "envelope"
SHAPE_CIRCLE = "circle"

# Fields fetched when discovering an anchor item's type and parents
RELATIONSHIP_FIELDS = ("id", "type", "cos", "resourceServer", "provider", "resourceGroup", "owner")

# List-by-type modes
_AGGREGATED_LISTS = {
    "instance": (INSTANCE_KEYWORD, None),
    "resourceGroup": (ID_KEYWORD, ItemType.RESOURCE_GROUP),
    "resourceServer": (ID_KEYWORD, ItemType.RESOURCE_SERVER),
    "provider": (ID_KEYWORD, ItemType.PROVIDER),
    "tags": (TAGS_KEYWORD, None),
}
_SOURCE_LISTS = {
    "owner": ItemType.OWNER,
    "cos": ItemType.COS,
}
LIST_TYPES = tuple(_AGGREGATED_LISTS) + tuple(_SOURCE_LISTS)


def keyword_field(name: str) -> str:
    return name if name.endswith(KEYWORD_SUFFIX) else f"{name}{KEYWORD_SUFFIX}"


def parse_instant(value: Any) -> datetime:
    """Parse an ISO-8601 instant; a trailing ``Z`` and naive values are taken as UTC."""
    if not isinstance(value, str) or not value:
        raise InvalidTemporalValueError(value)
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        instant = datetime.fromisoformat(text)
    except ValueError as e:
        raise InvalidTemporalValueError(value, cause=e)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant


class QueryDecoder:
    """
    Builds QueryModel trees for every catalogue query shape.

    Args:
        text_search_fields: Fields searched by free-text criteria
        vector_field: Stored per-item embedding, excluded from returned sources
        default_page_size: Limit applied when a request gives none
        max_result_window: Upper bound for limit + offset
    """

    def __init__(
        self,
        text_search_fields: Sequence[str],
        vector_field: str = "_word_vector",
        default_page_size: int = 100,
        max_result_window: int = 10000,
    ):
        self.text_search_fields = tuple(text_search_fields)
        self.vector_field = vector_field
        self.default_page_size = default_page_size
        self.max_result_window = max_result_window

    # ------------------------------------------------------------------
    # Search and count
    # ------------------------------------------------------------------

    def decode_search(self, request: SearchRequest) -> SearchQueryModel:
        """
        Decode a search request into a paginated query.

        Raises:
            MissingSearchTypeError: No criterion group is flagged
            InvalidSearchRequestError, InvalidGeometryError, InvalidTemporalValueError:
                A criterion is malformed
        """
        query = self._build_criteria_query(request)
        limit, offset = self.resolve_pagination(request.limit, request.offset, request.page)

        include_fields: tuple = ()
        if SearchType.RESPONSE_FILTER in request.search_type:
            include_fields = tuple(request.response_filter)

        search_query = SearchQueryModel(
            query=query,
            limit=limit,
            offset=offset,
            include_fields=include_fields,
            exclude_fields=(self.vector_field,),
        )
        logger.debug(f"Decoded search query: {search_query.to_dict()}")
        return search_query

    def decode_count(self, request: SearchRequest) -> SearchQueryModel:
        """Decode a count request: same filters, no pagination or source filtering."""
        if SearchType.RESPONSE_FILTER in request.search_type:
            raise InvalidSearchRequestError("response filter is not supported for count")
        query = self._build_criteria_query(request)
        logger.debug(f"Decoded count query: {query.to_dict()}")
        return SearchQueryModel(query=query)

    def _build_criteria_query(self, request: SearchRequest) -> QueryModel:
        search_type = request.search_type
        if search_type == NO_SEARCH_TYPE:
            raise MissingSearchTypeError()

        builder = BoolQueryBuilder()

        if SearchType.ATTRIBUTE in search_type:
            for criterion in self._criteria_of(request, CriterionType.TERM):
                builder.add_must(self._attribute_query(criterion))

        if SearchType.RANGE in search_type:
            for criterion in self._criteria_of(request, CriterionType.RANGE):
                builder.add_must(self._range_query(criterion))

        if SearchType.TEMPORAL in search_type:
            for criterion in self._criteria_of(request, CriterionType.TEMPORAL):
                builder.add_must(self._temporal_query(criterion))

        if SearchType.TEXT in search_type:
            builder.add_must(self._text_query(request.text))

        if SearchType.GEO in search_type:
            if request.geo is None:
                raise InvalidGeometryError("geo search requested without a geo criterion")
            builder.add_filter(self._geo_query(request.geo))

        if SearchType.TAGS in search_type:
            builder.add_filter(self._tags_query(request.tags))

        if request.instance:
            builder.add_filter(QueryModel.term(INSTANCE_KEYWORD, request.instance))

        return builder.build()

    @staticmethod
    def _criteria_of(request: SearchRequest, criterion_type: CriterionType) -> List[Criterion]:
        return [c for c in request.criteria if c.type == criterion_type]

    # --- Criterion fragments ---

    def _attribute_query(self, criterion: Criterion) -> QueryModel:
        if not criterion.field or not criterion.values:
            raise InvalidSearchRequestError(
                "attribute criterion needs a property and at least one value",
                details={"property": criterion.field},
            )
        field_name = keyword_field(criterion.field)
        if len(criterion.values) == 1:
            return QueryModel.term(field_name, criterion.values[0])
        builder = BoolQueryBuilder()
        for value in criterion.values:
            builder.add_should(QueryModel.term(field_name, value))
        return builder.minimum_should_match(1).build()

    def _range_query(self, criterion: Criterion) -> QueryModel:
        bounds = [self._parse_number(criterion, value) for value in criterion.values]
        return self._bounded_query(criterion, bounds)

    def _temporal_query(self, criterion: Criterion) -> QueryModel:
        bounds = []
        for value in criterion.values:
            try:
                bounds.append(parse_instant(value))
            except InvalidTemporalValueError as e:
                e.details["property"] = criterion.field
                raise
        return self._bounded_query(criterion, bounds, render=lambda instant: instant.isoformat())

    @staticmethod
    def _bounded_query(criterion: Criterion, bounds: List[Any], render=lambda value: value) -> QueryModel:
        operator = criterion.operator
        if not criterion.field:
            raise InvalidSearchRequestError("range criterion needs a property")
        expected = 2 if operator in (RangeRelation.BETWEEN, RangeRelation.DURING) else 1
        if operator is None or len(bounds) != expected:
            raise InvalidSearchRequestError(
                f"'{operator.value if operator else None}' requires exactly {expected} bound(s)",
                details={"property": criterion.field, "bounds": len(bounds)},
            )
        if operator == RangeRelation.BEFORE:
            return QueryModel.range(criterion.field, lte=render(bounds[0]))
        if operator == RangeRelation.AFTER:
            return QueryModel.range(criterion.field, gte=render(bounds[0]))
        low, high = bounds
        if low > high:
            raise InvalidSearchRequestError(
                "range lower bound is greater than upper bound",
                details={"property": criterion.field},
            )
        return QueryModel.range(criterion.field, gte=render(low), lte=render(high))

    @staticmethod
    def _parse_number(criterion: Criterion, value: Any) -> float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        try:
            number = float(value)
        except (TypeError, ValueError) as e:
            raise InvalidSearchRequestError(
                "range value is not numeric",
                details={"property": criterion.field, "value": value},
                cause=e,
            )
        return int(number) if number.is_integer() else number

    def _text_query(self, text: Optional[str]) -> QueryModel:
        if not text or not text.strip():
            raise InvalidSearchRequestError("text search requested without a query string")
        return QueryModel.multi_match(self.text_search_fields, text.strip())

    @staticmethod
    def _tags_query(tags: List[str]) -> QueryModel:
        if not tags:
            raise InvalidSearchRequestError("tags search requested without tags")
        return QueryModel.terms(TAGS_KEYWORD, [tag.lower() for tag in tags])

    def _geo_query(self, geo: GeoCriterion) -> QueryModel:
        field_name = f"{geo.property}.geometry" if geo.property else None
        if not field_name:
            raise InvalidGeometryError("missing geoproperty")

        if geo.relation == GeoRelation.NEAR:
            if geo.geometry != GeometryType.POINT:
                raise InvalidGeometryError("'near' is only supported for Point geometry")
            if geo.max_distance is None or geo.max_distance <= 0:
                raise InvalidGeometryError("'near' requires a positive maxDistance")
            point = self._validate_point(geo.coordinates)
            return QueryModel.geo_shape(
                field_name, SHAPE_CIRCLE, point, GeoRelation.INTERSECTS.value,
                radius=f"{geo.max_distance}m",
            )

        if geo.geometry == GeometryType.POINT:
            coordinates = self._validate_point(geo.coordinates)
            shape_type = "point"
        elif geo.geometry == GeometryType.BBOX:
            coordinates = self._validate_bbox(geo.coordinates)
            shape_type = SHAPE_ENVELOPE
        elif geo.geometry == GeometryType.LINESTRING:
            coordinates = self._validate_line(geo.coordinates)
            shape_type = "linestring"
        elif geo.geometry == GeometryType.POLYGON:
            coordinates = self._validate_polygon(geo.coordinates)
            shape_type = "polygon"
        else:
            raise InvalidGeometryError(f"unsupported geometry {geo.geometry}")
        return QueryModel.geo_shape(field_name, shape_type, coordinates, geo.relation.value)

    # --- Geometry validation ---

    @staticmethod
    def _validate_point(coordinates: Any) -> List[float]:
        if (
            not isinstance(coordinates, (list, tuple))
            or len(coordinates) != 2
            or not all(isinstance(c, (int, float)) and not isinstance(c, bool) for c in coordinates)
        ):
            raise InvalidGeometryError("a position must be [longitude, latitude]", {"coordinates": coordinates})
        lon, lat = coordinates
        if not (-180 <= lon <= 180 and -90 <= lat <= 90):
            raise InvalidGeometryError("position out of range", {"coordinates": coordinates})
        return [lon, lat]

    def _validate_line(self, coordinates: Any) -> List[List[float]]:
        if not isinstance(coordinates, (list, tuple)) or len(coordinates) < 2:
            raise InvalidGeometryError("LineString needs at least two positions", {"coordinates": coordinates})
        return [self._validate_point(position) for position in coordinates]

    def _validate_bbox(self, coordinates: Any) -> List[List[float]]:
        # bbox is given as [[minLon, maxLat], [maxLon, minLat]] (top-left, bottom-right)
        if not isinstance(coordinates, (list, tuple)) or len(coordinates) != 2:
            raise InvalidGeometryError("bbox needs exactly two positions", {"coordinates": coordinates})
        top_left, bottom_right = (self._validate_point(p) for p in coordinates)
        if top_left[0] > bottom_right[0] or top_left[1] < bottom_right[1]:
            raise InvalidGeometryError("bbox corners must be top-left then bottom-right", {"coordinates": coordinates})
        return [top_left, bottom_right]

    def _validate_polygon(self, coordinates: Any) -> List[List[List[float]]]:
        if not isinstance(coordinates, (list, tuple)) or not coordinates:
            raise InvalidGeometryError("Polygon needs at least one ring", {"coordinates": coordinates})
        rings = []
        for ring in coordinates:
            if not isinstance(ring, (list, tuple)) or len(ring) < 4:
                raise InvalidGeometryError("Polygon ring needs at least four positions", {"coordinates": coordinates})
            positions = [self._validate_point(position) for position in ring]
            if positions[0] != positions[-1]:
                raise InvalidGeometryError("Polygon ring is not closed", {"coordinates": coordinates})
            rings.append(positions)
        return rings

    # --- Pagination ---

    def resolve_pagination(self, limit: Optional[int], offset: Optional[int], page: Optional[int]):
        limit = self.default_page_size if limit is None else limit
        if limit < 0:
            raise InvalidSearchRequestError("limit must not be negative", {"limit": limit})
        if offset is None:
            if page is not None and page < 1:
                raise InvalidSearchRequestError("page starts at 1", {"page": page})
            offset = limit * (page - 1) if page else 0
        if offset < 0:
            raise InvalidSearchRequestError("offset must not be negative", {"offset": offset})
        if limit + offset > self.max_result_window:
            raise InvalidSearchRequestError(
                f"limit + offset must not exceed {self.max_result_window}",
                {"limit": limit, "offset": offset},
            )
        return limit, offset

    def resolve_window(self, limit: Optional[int], offset: Optional[int]):
        """Like resolve_pagination, but a missing limit takes whatever the window leaves after offset."""
        if limit is None:
            limit = max(self.max_result_window - (offset or 0), 0)
        return self.resolve_pagination(limit, offset, None)

    # ------------------------------------------------------------------
    # List by type
    # ------------------------------------------------------------------

    def decode_list_by_type(self, request: ListRequest) -> SearchQueryModel:
        """
        Decode a list request.

        ``instance``, ``resourceGroup``, ``resourceServer``, ``provider`` and
        ``tags`` aggregate distinct values into buckets; ``owner`` and ``cos``
        return the matching documents.
        """
        builder = BoolQueryBuilder()
        if request.instance:
            builder.add_filter(QueryModel.term(INSTANCE_KEYWORD, request.instance))

        if request.item_type in _AGGREGATED_LISTS:
            field_name, item_type = _AGGREGATED_LISTS[request.item_type]
            if item_type is not None:
                builder.add_filter(QueryModel.term(TYPE_KEYWORD, item_type.urn))
            query = SearchQueryModel(
                query=builder.build(),
                limit=0,
                aggregations=(Aggregation(AGGREGATION_NAME, field_name, self.max_result_window),),
            )
        elif request.item_type in _SOURCE_LISTS:
            builder.add_filter(QueryModel.term(TYPE_KEYWORD, _SOURCE_LISTS[request.item_type].urn))
            limit, offset = self.resolve_window(request.limit, request.offset)
            query = SearchQueryModel(
                query=builder.build(),
                limit=limit,
                offset=offset,
                exclude_fields=(self.vector_field,),
            )
        else:
            raise InvalidSearchRequestError(
                f"unknown list type '{request.item_type}'",
                details={"supported": list(LIST_TYPES)},
            )
        logger.debug(f"Decoded list query for {request.item_type}: {query.to_dict()}")
        return query

    # ------------------------------------------------------------------
    # Relationship traversal
    # ------------------------------------------------------------------

    @staticmethod
    def decode_item_lookup(item_id: str) -> SearchQueryModel:
        """Fetch one item with just the fields needed to walk the hierarchy."""
        query = BoolQueryBuilder().add_filter(QueryModel.term(ID_KEYWORD, item_id)).build()
        return SearchQueryModel(query=query, limit=1, include_fields=RELATIONSHIP_FIELDS)

    def decode_items_by_id(self, ids: Sequence[str]) -> SearchQueryModel:
        """Fetch intermediate items by id, keeping only hierarchy fields."""
        query = BoolQueryBuilder().add_filter(QueryModel.terms(ID_KEYWORD, ids)).build()
        return SearchQueryModel(query=query, limit=self.max_result_window, include_fields=RELATIONSHIP_FIELDS)

    def decode_carrier_lookup(self, item_type: ItemType, carried: ItemType, ids: Sequence[str]) -> SearchQueryModel:
        """Ids of ``item_type`` items whose ``carried`` field holds one of ``ids``."""
        query = (
            BoolQueryBuilder()
            .add_filter(QueryModel.term(TYPE_KEYWORD, item_type.urn))
            .add_filter(QueryModel.terms(keyword_field(carried.value), ids))
            .build()
        )
        return SearchQueryModel(query=query, limit=self.max_result_window, include_fields=("id",))

    def decode_relationship(
        self,
        result: RelationshipResult,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> SearchQueryModel:
        """
        Decode the final query of a relationship resolution.

        Raises:
            InvalidRelationshipError: The resolution state does not describe a
                traversal to the requested relationship
        """
        builder = BoolQueryBuilder()
        relationship = result.relationship

        if relationship == RELATIONSHIP_ALL:
            ancestor_ids = [i for ids in result.ancestor_ids.values() for i in ids]
            if ancestor_ids:
                builder.add_should(QueryModel.terms(ID_KEYWORD, ancestor_ids))
            if any(result.anchor_type in carried for carried in CARRIED_FIELDS.values()):
                builder.add_should(QueryModel.term(keyword_field(result.anchor_type.value), result.anchor_id))
            if builder.is_empty():
                raise InvalidRelationshipError(result.anchor_type.value, relationship)
            builder.minimum_should_match(1)
        else:
            target = ItemType.from_name(relationship)
            if target is None or target == result.anchor_type:
                raise InvalidRelationshipError(result.anchor_type.value, relationship)
            builder.add_filter(QueryModel.term(TYPE_KEYWORD, target.urn))
            if target in result.ancestor_ids:
                builder.add_must(QueryModel.terms(ID_KEYWORD, result.ancestor_ids[target]))
            elif result.carrier_field:
                builder.add_must(QueryModel.terms(keyword_field(result.carrier_field), result.carrier_ids))
            else:
                raise InvalidRelationshipError(result.anchor_type.value, relationship)

        limit, offset = self.resolve_window(limit, offset)
        query = SearchQueryModel(
            query=builder.build(),
            limit=limit,
            offset=offset,
            exclude_fields=(self.vector_field,),
        )
        logger.debug(f"Decoded relationship query {result.anchor_type.value}->{relationship}: {query.to_dict()}")
        return query

    # ------------------------------------------------------------------
    # Relationship search (items under parents matching an attribute)
    # ------------------------------------------------------------------

    def decode_rel_search_lookup(self, request: RelSearchRequest) -> SearchQueryModel:
        if not request.attribute or not request.values:
            raise InvalidSearchRequestError("relationship search needs an attribute and a value")
        # Page window of the follow-up query
        self.resolve_pagination(request.limit, request.offset, None)
        builder = BoolQueryBuilder().add_must(QueryModel.term(TYPE_KEYWORD, request.item_type.urn))
        if len(request.values) == 1:
            builder.add_must(QueryModel.match(request.attribute, request.values[0]))
        else:
            values = BoolQueryBuilder()
            for value in request.values:
                values.add_should(QueryModel.match(request.attribute, value))
            builder.add_must(values.minimum_should_match(1).build())
        return SearchQueryModel(query=builder.build(), limit=self.max_result_window, include_fields=("id",))

    def decode_rel_search(
        self,
        parent_ids: Sequence[str],
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> SearchQueryModel:
        builder = BoolQueryBuilder()
        for parent_id in parent_ids:
            builder.add_should(QueryModel.wildcard(ID_KEYWORD, f"{parent_id}*"))
        limit, offset = self.resolve_pagination(limit, offset, None)
        return SearchQueryModel(
            query=builder.minimum_should_match(1).build(),
            limit=limit,
            offset=offset,
            exclude_fields=(self.vector_field,),
        )

    # ------------------------------------------------------------------
    # Vector similarity
    # ------------------------------------------------------------------

    def decode_vector_search(
        self,
        vector: Sequence[float],
        region: Optional[GeoRegion] = None,
        geo_field: str = "location.geometry",
    ) -> SearchQueryModel:
        """
        Decode a vector-similarity query, optionally restricted to a region.

        The region contributes a should-match over its present attributes and,
        when it has a bounding box, an envelope filter on ``geo_field``.
        """
        custom_query = None
        if region is not None:
            builder = BoolQueryBuilder()
            for name, value in region.attributes().items():
                builder.add_should(QueryModel.match(f"{GEOCODED_FIELD_PREFIX}{name}", value))
            if region.attributes():
                builder.minimum_should_match(1)
            if region.bbox:
                min_lon, min_lat, max_lon, max_lat = region.bbox
                builder.add_filter(
                    QueryModel.geo_shape(
                        geo_field,
                        SHAPE_ENVELOPE,
                        [[min_lon, max_lat], [max_lon, min_lat]],
                        GeoRelation.INTERSECTS.value,
                    )
                )
            if not builder.is_empty():
                custom_query = builder.build()

        return SearchQueryModel(
            query=QueryModel.script_score(vector, self.vector_field, custom_query),
            limit=self.default_page_size,
            exclude_fields=(self.vector_field,),
        )
