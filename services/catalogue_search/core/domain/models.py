# core/domain/models.py
#
# Description:
# Core domain models for catalogue search: normalized requests, item types,
# collaborator results and the uniform response envelope.
# These models are framework-agnostic; the API layer maps into and out of them.

from typing import List, Optional, Dict, Any
from dataclasses import dataclass, field
from enum import Enum, Flag, auto


class SearchType(Flag):
    """Criterion groups present in a search request."""
    ATTRIBUTE = auto()
    TEMPORAL = auto()
    RANGE = auto()
    GEO = auto()
    TEXT = auto()
    TAGS = auto()
    RESPONSE_FILTER = auto()


NO_SEARCH_TYPE = SearchType(0)


class CriterionType(Enum):
    TERM = "term"
    RANGE = "range"
    TEMPORAL = "temporal"


class RangeRelation(Enum):
    """Bound relations shared by range and temporal criteria."""
    BEFORE = "before"
    AFTER = "after"
    BETWEEN = "between"
    DURING = "during"  # Alias of BETWEEN used by temporal queries


class GeoRelation(Enum):
    WITHIN = "within"
    INTERSECTS = "intersects"
    NEAR = "near"


class GeometryType(Enum):
    POINT = "Point"
    POLYGON = "Polygon"
    LINESTRING = "LineString"
    BBOX = "bbox"


class ItemType(Enum):
    """Catalogue item types, valued by their short relationship names."""
    RESOURCE = "resource"
    RESOURCE_GROUP = "resourceGroup"
    PROVIDER = "provider"
    RESOURCE_SERVER = "resourceServer"
    COS = "cos"
    OWNER = "owner"

    @property
    def urn(self) -> str:
        """Value stored in the document's ``type`` list."""
        return _ITEM_TYPE_URNS[self]

    @classmethod
    def from_urn(cls, urn: str) -> Optional["ItemType"]:
        for item_type, value in _ITEM_TYPE_URNS.items():
            if value == urn:
                return item_type
        return None

    @classmethod
    def from_name(cls, name: str) -> Optional["ItemType"]:
        try:
            return cls(name)
        except ValueError:
            return None


_ITEM_TYPE_URNS = {
    ItemType.RESOURCE: "iudx:Resource",
    ItemType.RESOURCE_GROUP: "iudx:ResourceGroup",
    ItemType.PROVIDER: "iudx:Provider",
    ItemType.RESOURCE_SERVER: "iudx:ResourceServer",
    ItemType.COS: "iudx:COS",
    ItemType.OWNER: "iudx:Owner",
}

# Relationship names accepted on the relationship endpoint
RELATIONSHIP_ALL = "all"
RELATIONSHIP_NAMES = tuple(t.value for t in ItemType if t != ItemType.OWNER) + (RELATIONSHIP_ALL,)


class ResponseStatus(Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class Criterion:
    """
    One attribute, range or temporal condition.

    For TERM criteria ``values`` are alternatives (any may match). For RANGE and
    TEMPORAL criteria ``values`` are the bounds in order, and ``operator`` is a
    RangeRelation.
    """
    type: CriterionType
    field: str
    values: List[Any]
    operator: Optional[RangeRelation] = None


@dataclass
class GeoCriterion:
    property: str
    relation: GeoRelation
    geometry: GeometryType
    coordinates: Any
    max_distance: Optional[float] = None


@dataclass
class SearchRequest:
    """Normalized search request, already authenticated and schema-checked."""
    criteria: List[Criterion] = field(default_factory=list)
    geo: Optional[GeoCriterion] = None
    text: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    response_filter: List[str] = field(default_factory=list)
    instance: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    page: Optional[int] = None
    search_type: SearchType = NO_SEARCH_TYPE


def derive_search_type(request: SearchRequest) -> SearchType:
    """Compute the flag set from the criterion groups actually present."""
    search_type = NO_SEARCH_TYPE
    for criterion in request.criteria:
        if criterion.type == CriterionType.TERM:
            search_type |= SearchType.ATTRIBUTE
        elif criterion.type == CriterionType.RANGE:
            search_type |= SearchType.RANGE
        elif criterion.type == CriterionType.TEMPORAL:
            search_type |= SearchType.TEMPORAL
    if request.geo is not None:
        search_type |= SearchType.GEO
    if request.text:
        search_type |= SearchType.TEXT
    if request.tags:
        search_type |= SearchType.TAGS
    if request.response_filter:
        search_type |= SearchType.RESPONSE_FILTER
    return search_type


@dataclass
class ListRequest:
    item_type: str
    instance: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None


@dataclass
class RelationshipRequest:
    item_id: str
    relationship: str
    limit: Optional[int] = None
    offset: Optional[int] = None


@dataclass
class RelSearchRequest:
    """Find items whose id is prefixed by items of ``item_type`` matching ``attribute``."""
    item_type: ItemType
    attribute: str
    values: List[str]
    limit: Optional[int] = None
    offset: Optional[int] = None


@dataclass
class RelationshipResult:
    """
    Intermediate state of one relationship resolution.

    ``ancestor_ids`` holds ids resolved upward, keyed by type. For downward
    traversals ``carrier_field``/``carrier_ids`` describe the final hop: target
    items whose ``carrier_field`` holds one of ``carrier_ids``.
    """
    anchor_id: str
    anchor_type: ItemType
    relationship: str
    ancestor_ids: Dict[ItemType, List[str]] = field(default_factory=dict)
    carrier_field: Optional[str] = None
    carrier_ids: List[str] = field(default_factory=list)


@dataclass
class GeoRegion:
    """Candidate administrative region returned by the geocoder."""
    borough: Optional[str] = None
    locality: Optional[str] = None
    county: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    bbox: Optional[List[float]] = None  # [minLon, minLat, maxLon, maxLat]
    confidence: Optional[float] = None

    def attributes(self) -> Dict[str, str]:
        """Regional attributes that are present, in fixed order."""
        names = ("borough", "locality", "county", "region", "country")
        return {name: getattr(self, name) for name in names if getattr(self, name)}

    def label(self) -> str:
        return ", ".join(self.attributes().values()) or "<unnamed region>"


@dataclass
class EmbeddingResult:
    vector: List[float]
    location: Optional[str] = None  # None when the text names no place


@dataclass
class SearchHits:
    """Raw outcome of one backend call."""
    documents: List[Dict[str, Any]] = field(default_factory=list)
    total_hits: int = 0
    buckets: Dict[str, List[Any]] = field(default_factory=dict)
    timed_out: bool = False
    failed_shards: int = 0

    @property
    def is_partial(self) -> bool:
        return self.timed_out or self.failed_shards > 0

    def ids(self) -> List[str]:
        return [doc["id"] for doc in self.documents if doc.get("id")]


@dataclass
class ResponseEnvelope:
    """Uniform response consumed by the HTTP layer."""
    type: str
    title: str
    status: ResponseStatus
    total_hits: int
    results: List[Any] = field(default_factory=list)
    detail: Optional[str] = None
