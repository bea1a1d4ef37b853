# core/domain/query_model.py
#
# Description:
# Backend-agnostic intermediate representation of catalogue queries.
# A QueryModel is an immutable tree of boolean combinators and leaf operators;
# decoders assemble it bottom-up (BoolQueryBuilder for the combinators) and the
# OpenSearch mapper turns it into native query DSL.

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple


class QueryType(Enum):
    """Kinds of query nodes."""
    MATCH = "match"
    TERM = "term"
    TERMS = "terms"
    BOOL = "bool"
    RANGE = "range"
    WILDCARD = "wildcard"
    GEO_SHAPE = "geo_shape"
    SCRIPT_SCORE = "script_score"


class SortOrder(Enum):
    ASC = "asc"
    DESC = "desc"


class QueryModelError(ValueError):
    """Raised when a query node is constructed with missing or inconsistent params."""
    pass


# Required params per leaf kind
_REQUIRED_PARAMS: Dict[QueryType, Tuple[str, ...]] = {
    QueryType.TERM: ("field", "value"),
    QueryType.TERMS: ("field", "values"),
    QueryType.WILDCARD: ("field", "value"),
    QueryType.RANGE: ("field",),
    QueryType.GEO_SHAPE: ("field", "shape_type", "coordinates", "relation"),
    QueryType.SCRIPT_SCORE: ("query_vector", "vector_field"),
}

_RANGE_BOUNDS = ("gte", "lte", "gt", "lt")


@dataclass(frozen=True)
class QueryModel:
    """
    A single node of the query tree.

    Leaf nodes carry kind-specific ``params``; BOOL nodes carry ordered child
    tuples. Nodes are frozen, so two independently built trees with the same
    content compare equal.
    """
    kind: QueryType
    params: Mapping[str, Any] = field(default_factory=dict)
    must: Tuple["QueryModel", ...] = ()
    should: Tuple["QueryModel", ...] = ()
    filter: Tuple["QueryModel", ...] = ()
    must_not: Tuple["QueryModel", ...] = ()
    minimum_should_match: Optional[int] = None

    # params may hold lists (coordinates), so nodes compare by value but are not hashable
    __hash__ = None

    def __post_init__(self):
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))
        if self.kind == QueryType.BOOL:
            return
        if self.must or self.should or self.filter or self.must_not:
            raise QueryModelError(f"{self.kind.name} node cannot have boolean children")
        if self.kind == QueryType.MATCH:
            if "value" not in self.params or not ("field" in self.params or "fields" in self.params):
                raise QueryModelError("MATCH requires a value and a field or fields")
            return
        missing = [name for name in _REQUIRED_PARAMS[self.kind] if self.params.get(name) is None]
        if missing:
            raise QueryModelError(f"{self.kind.name} is missing params: {', '.join(missing)}")
        if self.kind == QueryType.RANGE and not any(
            self.params.get(bound) is not None for bound in _RANGE_BOUNDS
        ):
            raise QueryModelError("RANGE requires at least one bound")

    # --- Leaf constructors ---

    @classmethod
    def match(cls, field_name: str, value: Any) -> "QueryModel":
        return cls(QueryType.MATCH, {"field": field_name, "value": value})

    @classmethod
    def multi_match(cls, fields: Sequence[str], value: Any) -> "QueryModel":
        if not fields:
            raise QueryModelError("MATCH across fields requires at least one field")
        return cls(QueryType.MATCH, {"fields": tuple(fields), "value": value})

    @classmethod
    def term(cls, field_name: str, value: Any) -> "QueryModel":
        return cls(QueryType.TERM, {"field": field_name, "value": value})

    @classmethod
    def terms(cls, field_name: str, values: Sequence[Any]) -> "QueryModel":
        return cls(QueryType.TERMS, {"field": field_name, "values": tuple(values)})

    @classmethod
    def wildcard(cls, field_name: str, value: str) -> "QueryModel":
        return cls(QueryType.WILDCARD, {"field": field_name, "value": value})

    @classmethod
    def range(
        cls,
        field_name: str,
        gte: Any = None,
        lte: Any = None,
        gt: Any = None,
        lt: Any = None,
    ) -> "QueryModel":
        params = {"field": field_name}
        for name, bound in (("gte", gte), ("lte", lte), ("gt", gt), ("lt", lt)):
            if bound is not None:
                params[name] = bound
        return cls(QueryType.RANGE, params)

    @classmethod
    def geo_shape(
        cls,
        field_name: str,
        shape_type: str,
        coordinates: Any,
        relation: str,
        radius: Optional[str] = None,
    ) -> "QueryModel":
        params = {
            "field": field_name,
            "shape_type": shape_type,
            "coordinates": coordinates,
            "relation": relation,
        }
        if radius is not None:
            params["radius"] = radius
        return cls(QueryType.GEO_SHAPE, params)

    @classmethod
    def script_score(
        cls,
        query_vector: Sequence[float],
        vector_field: str,
        custom_query: Optional["QueryModel"] = None,
    ) -> "QueryModel":
        if not query_vector:
            raise QueryModelError("SCRIPT_SCORE requires a non-empty query vector")
        params = {"query_vector": tuple(query_vector), "vector_field": vector_field}
        if custom_query is not None:
            params["custom_query"] = custom_query
        return cls(QueryType.SCRIPT_SCORE, params)

    def to_dict(self) -> Dict[str, Any]:
        """Structural dump of the tree, used for logging and comparisons."""
        if self.kind != QueryType.BOOL:
            params = {}
            for key, value in self.params.items():
                params[key] = value.to_dict() if isinstance(value, QueryModel) else value
            return {self.kind.value: params}
        clauses: Dict[str, Any] = {}
        for clause in ("must", "should", "filter", "must_not"):
            children = getattr(self, clause)
            if children:
                clauses[clause] = [child.to_dict() for child in children]
        if self.minimum_should_match is not None:
            clauses["minimum_should_match"] = self.minimum_should_match
        return {"bool": clauses}


class BoolQueryBuilder:
    """
    Append-only builder for BOOL nodes.

    Children are appended to per-clause lists; ``build()`` freezes them into
    an immutable QueryModel without copying the children themselves.
    """

    def __init__(self):
        self._must: List[QueryModel] = []
        self._should: List[QueryModel] = []
        self._filter: List[QueryModel] = []
        self._must_not: List[QueryModel] = []
        self._minimum_should_match: Optional[int] = None

    def add_must(self, query: QueryModel) -> "BoolQueryBuilder":
        self._must.append(query)
        return self

    def add_should(self, query: QueryModel) -> "BoolQueryBuilder":
        self._should.append(query)
        return self

    def add_filter(self, query: QueryModel) -> "BoolQueryBuilder":
        self._filter.append(query)
        return self

    def add_must_not(self, query: QueryModel) -> "BoolQueryBuilder":
        self._must_not.append(query)
        return self

    def minimum_should_match(self, value: int) -> "BoolQueryBuilder":
        self._minimum_should_match = value
        return self

    def is_empty(self) -> bool:
        return not (self._must or self._should or self._filter or self._must_not)

    def build(self) -> QueryModel:
        return QueryModel(
            QueryType.BOOL,
            must=tuple(self._must),
            should=tuple(self._should),
            filter=tuple(self._filter),
            must_not=tuple(self._must_not),
            minimum_should_match=self._minimum_should_match,
        )


@dataclass(frozen=True)
class Aggregation:
    """Terms bucket aggregation over a single field."""
    name: str
    field: str
    size: int


@dataclass(frozen=True)
class SearchQueryModel:
    """Top-level query: the query tree plus paging, sorting and source filtering."""
    query: QueryModel
    limit: Optional[int] = None
    offset: Optional[int] = None
    sort: Tuple[Tuple[str, SortOrder], ...] = ()
    include_fields: Tuple[str, ...] = ()
    exclude_fields: Tuple[str, ...] = ()
    aggregations: Tuple[Aggregation, ...] = ()

    __hash__ = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"query": self.query.to_dict()}
        if self.limit is not None:
            body["limit"] = self.limit
        if self.offset is not None:
            body["offset"] = self.offset
        if self.sort:
            body["sort"] = [{name: order.value} for name, order in self.sort]
        if self.include_fields:
            body["include"] = list(self.include_fields)
        if self.exclude_fields:
            body["exclude"] = list(self.exclude_fields)
        if self.aggregations:
            body["aggregations"] = [
                {"name": agg.name, "field": agg.field, "size": agg.size} for agg in self.aggregations
            ]
        return body
