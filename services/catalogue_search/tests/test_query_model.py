"""
Tests for the query model: node validation, builder semantics and equality.
"""

import pytest

from core.domain.query_model import (
    Aggregation,
    BoolQueryBuilder,
    QueryModel,
    QueryModelError,
    QueryType,
    SearchQueryModel,
)


class TestQueryModelConstruction:
    """Leaf constructors validate their params."""

    def test_term_node(self):
        node = QueryModel.term("id.keyword", "abc")
        assert node.kind == QueryType.TERM
        assert node.params["field"] == "id.keyword"
        assert node.params["value"] == "abc"

    def test_params_are_read_only(self):
        node = QueryModel.term("id.keyword", "abc")
        with pytest.raises(TypeError):
            node.params["value"] = "other"

    def test_range_requires_a_bound(self):
        with pytest.raises(QueryModelError):
            QueryModel.range("itemCreatedAt")

    def test_range_keeps_only_given_bounds(self):
        node = QueryModel.range("size", gte=1)
        assert dict(node.params) == {"field": "size", "gte": 1}

    def test_geo_shape_requires_coordinates(self):
        with pytest.raises(QueryModelError):
            QueryModel.geo_shape("location.geometry", "envelope", None, "within")

    def test_geo_shape_radius_is_optional(self):
        node = QueryModel.geo_shape("location.geometry", "circle", [73.8, 18.5], "intersects", radius="500m")
        assert node.params["radius"] == "500m"

    def test_script_score_requires_vector(self):
        with pytest.raises(QueryModelError):
            QueryModel.script_score([], "_word_vector")

    def test_multi_match_requires_fields(self):
        with pytest.raises(QueryModelError):
            QueryModel.multi_match([], "flood")

    def test_leaf_cannot_have_children(self):
        with pytest.raises(QueryModelError):
            QueryModel(QueryType.TERM, {"field": "a", "value": 1}, must=(QueryModel.term("b", 2),))


class TestBoolQueryBuilder:
    """BOOL nodes are built append-only and frozen on build()."""

    def test_clauses_keep_insertion_order(self):
        first = QueryModel.term("a.keyword", 1)
        second = QueryModel.term("b.keyword", 2)
        node = BoolQueryBuilder().add_must(first).add_must(second).build()
        assert node.kind == QueryType.BOOL
        assert node.must == (first, second)
        assert node.should == ()

    def test_build_shares_children(self):
        child = QueryModel.match("label", "flood")
        node = BoolQueryBuilder().add_filter(child).build()
        assert node.filter[0] is child

    def test_later_appends_do_not_change_built_node(self):
        builder = BoolQueryBuilder().add_should(QueryModel.term("a", 1))
        node = builder.build()
        builder.add_should(QueryModel.term("b", 2))
        assert len(node.should) == 1

    def test_minimum_should_match(self):
        node = (
            BoolQueryBuilder()
            .add_should(QueryModel.term("a", 1))
            .minimum_should_match(1)
            .build()
        )
        assert node.minimum_should_match == 1

    def test_is_empty(self):
        assert BoolQueryBuilder().is_empty()
        assert not BoolQueryBuilder().add_must_not(QueryModel.term("a", 1)).is_empty()


class TestStructuralEquality:
    """Independently built trees with the same content compare equal."""

    def _build(self):
        return SearchQueryModel(
            query=(
                BoolQueryBuilder()
                .add_must(QueryModel.terms("tags.keyword", ["flood", "rain"]))
                .add_filter(QueryModel.geo_shape("location.geometry", "envelope", [[1, 2], [3, 0]], "within"))
                .build()
            ),
            limit=10,
            offset=0,
            exclude_fields=("_word_vector",),
        )

    def test_equal_trees(self):
        assert self._build() == self._build()

    def test_different_values_are_not_equal(self):
        other = SearchQueryModel(query=QueryModel.term("id.keyword", "x"))
        assert self._build() != other

    def test_trees_are_unhashable(self):
        with pytest.raises(TypeError, match="unhashable type: 'SearchQueryModel'"):
            hash(self._build())
        with pytest.raises(TypeError, match="unhashable type: 'QueryModel'"):
            hash(QueryModel.term("id.keyword", "x"))

    def test_to_dict(self):
        body = SearchQueryModel(
            query=BoolQueryBuilder().add_filter(QueryModel.term("type.keyword", "iudx:Provider")).build(),
            limit=0,
            aggregations=(Aggregation("results", "id.keyword", 10000),),
        ).to_dict()
        assert body["query"] == {"bool": {"filter": [{"term": {"field": "type.keyword", "value": "iudx:Provider"}}]}}
        assert body["limit"] == 0
        assert body["aggregations"] == [{"name": "results", "field": "id.keyword", "size": 10000}]
