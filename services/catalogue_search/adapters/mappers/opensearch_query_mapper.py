# adapters/mappers/opensearch_query_mapper.py
#
# Description:
# Mapper between backend-agnostic query models and OpenSearch query DSL.
# Serialization is a pure transform; response parsing turns raw OpenSearch
# responses back into domain SearchHits.

from typing import Any, Dict, List

from core.domain.models import SearchHits
from core.domain.query_model import QueryModel, QueryType, SearchQueryModel

# Cosine similarity shifted to keep scores positive, as script_score requires
COSINE_SCRIPT = "cosineSimilarity(params.query_vector, '{field}') + 1.0"


class OpenSearchQueryMapper:
    """Converts QueryModel trees to OpenSearch DSL and responses to SearchHits."""

    @staticmethod
    def to_query_dsl(node: QueryModel) -> Dict[str, Any]:
        """Serialize one query node (recursively for BOOL and SCRIPT_SCORE)."""
        params = node.params
        kind = node.kind

        if kind == QueryType.BOOL:
            clauses: Dict[str, Any] = {}
            for clause in ("must", "should", "filter", "must_not"):
                children = getattr(node, clause)
                if children:
                    clauses[clause] = [OpenSearchQueryMapper.to_query_dsl(child) for child in children]
            if node.minimum_should_match is not None:
                clauses["minimum_should_match"] = node.minimum_should_match
            return {"bool": clauses}

        if kind == QueryType.MATCH:
            if "fields" in params:
                return {"multi_match": {"query": params["value"], "fields": list(params["fields"])}}
            return {"match": {params["field"]: {"query": params["value"]}}}

        if kind == QueryType.TERM:
            return {"term": {params["field"]: params["value"]}}

        if kind == QueryType.TERMS:
            return {"terms": {params["field"]: list(params["values"])}}

        if kind == QueryType.WILDCARD:
            return {"wildcard": {params["field"]: {"value": params["value"]}}}

        if kind == QueryType.RANGE:
            bounds = {name: params[name] for name in ("gte", "lte", "gt", "lt") if name in params}
            return {"range": {params["field"]: bounds}}

        if kind == QueryType.GEO_SHAPE:
            shape = {"type": params["shape_type"], "coordinates": params["coordinates"]}
            if "radius" in params:
                shape["radius"] = params["radius"]
            return {"geo_shape": {params["field"]: {"shape": shape, "relation": params["relation"]}}}

        if kind == QueryType.SCRIPT_SCORE:
            custom_query = params.get("custom_query")
            return {
                "script_score": {
                    "query": (
                        OpenSearchQueryMapper.to_query_dsl(custom_query)
                        if custom_query is not None
                        else {"match_all": {}}
                    ),
                    "script": {
                        "source": COSINE_SCRIPT.format(field=params["vector_field"]),
                        "params": {"query_vector": list(params["query_vector"])},
                    },
                }
            }

        raise ValueError(f"Unsupported query kind: {kind}")

    @staticmethod
    def to_search_body(search_query: SearchQueryModel) -> Dict[str, Any]:
        """Build a _search request body."""
        body: Dict[str, Any] = {
            "query": OpenSearchQueryMapper.to_query_dsl(search_query.query),
            "track_total_hits": True,
        }
        if search_query.limit is not None:
            body["size"] = search_query.limit
        if search_query.offset:
            body["from"] = search_query.offset
        if search_query.sort:
            body["sort"] = [{name: {"order": order.value}} for name, order in search_query.sort]

        source: Dict[str, List[str]] = {}
        if search_query.include_fields:
            source["includes"] = list(search_query.include_fields)
        if search_query.exclude_fields:
            source["excludes"] = list(search_query.exclude_fields)
        if source:
            body["_source"] = source

        if search_query.aggregations:
            body["aggs"] = {
                agg.name: {"terms": {"field": agg.field, "size": agg.size}}
                for agg in search_query.aggregations
            }
        return body

    @staticmethod
    def to_count_body(search_query: SearchQueryModel) -> Dict[str, Any]:
        return {"query": OpenSearchQueryMapper.to_query_dsl(search_query.query)}

    @staticmethod
    def response_to_hits(response: Dict[str, Any]) -> SearchHits:
        """Parse a raw _search response."""
        hits = response.get("hits", {})
        total = hits.get("total", 0)
        total_hits = total.get("value", 0) if isinstance(total, dict) else int(total)

        buckets = {
            name: [bucket["key"] for bucket in aggregation.get("buckets", [])]
            for name, aggregation in (response.get("aggregations") or {}).items()
        }

        return SearchHits(
            documents=[hit.get("_source", {}) for hit in hits.get("hits", [])],
            total_hits=total_hits,
            buckets=buckets,
            timed_out=bool(response.get("timed_out", False)),
            failed_shards=int(response.get("_shards", {}).get("failed", 0)),
        )
