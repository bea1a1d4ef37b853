"""
Tests for RelationshipService hierarchy traversal.

Each test scripts the repository with the documents every lookup would
return, then checks both the envelope and the sequence of issued queries.
"""

import pytest

from core.domain.exceptions import InvalidRelationshipError, ItemNotFoundError
from core.domain.item_hierarchy import TraversalDirection, find_path
from core.domain.models import ItemType, RelationshipRequest, ResponseStatus
from core.domain.query_model import QueryModel
from core.services.relationship_service import RelationshipService, field_values, item_type_of


@pytest.fixture
def service(repository, decoder):
    return RelationshipService(repository, decoder)


def _queries(repository):
    return [call.args[0] for call in repository.search.await_args_list]


class TestHelpers:
    def test_field_values_flattens_lists(self):
        docs = [{"tags": ["a", "b"]}, {"tags": "b"}, {"tags": "c"}, {}]
        assert field_values(docs, "tags") == ["a", "b", "c"]

    def test_item_type_of(self, resource_group_doc):
        assert item_type_of(resource_group_doc) == ItemType.RESOURCE_GROUP
        assert item_type_of({"type": ["iudx:Unknown"]}) is None

    def test_find_path_up_and_down(self):
        up = find_path(ItemType.RESOURCE_GROUP, ItemType.RESOURCE_SERVER)
        assert up.direction == TraversalDirection.UP
        assert up.intermediates == (ItemType.PROVIDER,)

        down = find_path(ItemType.RESOURCE_SERVER, ItemType.RESOURCE_GROUP)
        assert down.direction == TraversalDirection.DOWN
        assert down.intermediates == (ItemType.PROVIDER,)

        assert find_path(ItemType.PROVIDER, ItemType.PROVIDER) is None


class TestUpwardTraversal:
    @pytest.mark.asyncio
    async def test_resource_group_to_resource_server(
        self, service, repository, make_hits, ids, resource_group_doc, provider_doc, resource_server_doc
    ):
        repository.search.side_effect = [
            make_hits(resource_group_doc),
            make_hits(provider_doc),
            make_hits(resource_server_doc),
        ]

        envelope = await service.resolve(RelationshipRequest(ids.resource_group, "resourceServer"))

        assert envelope.status == ResponseStatus.SUCCESS
        assert envelope.results == [resource_server_doc]

        anchor_lookup, provider_lookup, final = _queries(repository)
        assert anchor_lookup.query.filter == (QueryModel.term("id.keyword", ids.resource_group),)
        assert provider_lookup.query.filter == (QueryModel.terms("id.keyword", [ids.provider]),)
        assert final.query.filter == (QueryModel.term("type.keyword", "iudx:ResourceServer"),)
        assert final.query.must == (QueryModel.terms("id.keyword", [ids.resource_server]),)

    @pytest.mark.asyncio
    async def test_direct_parent_needs_no_intermediate_lookup(
        self, service, repository, make_hits, ids, resource_doc, resource_group_doc
    ):
        repository.search.side_effect = [make_hits(resource_doc), make_hits(resource_group_doc)]

        envelope = await service.resolve(RelationshipRequest(ids.resource, "resourceGroup"))

        assert envelope.results == [resource_group_doc]
        assert repository.search.await_count == 2
        assert _queries(repository)[1].query.must == (QueryModel.terms("id.keyword", [ids.resource_group]),)

    @pytest.mark.asyncio
    async def test_offset_without_limit(self, service, repository, make_hits, ids, resource_group_doc, provider_doc):
        repository.search.side_effect = [make_hits(resource_group_doc), make_hits(provider_doc)]

        envelope = await service.resolve(RelationshipRequest(ids.resource_group, "provider", offset=5))

        assert envelope.status == ResponseStatus.SUCCESS
        final = _queries(repository)[1]
        assert (final.limit, final.offset) == (9995, 5)

    @pytest.mark.asyncio
    async def test_missing_intermediate_item_is_not_found(
        self, service, repository, make_hits, ids, resource_group_doc
    ):
        repository.search.side_effect = [make_hits(resource_group_doc), make_hits()]

        with pytest.raises(ItemNotFoundError) as exc_info:
            await service.resolve(RelationshipRequest(ids.resource_group, "resourceServer"))

        assert exc_info.value.details["reason"] == "provider for given item not found"
        assert repository.search.await_count == 2

    @pytest.mark.asyncio
    async def test_missing_parent_field_is_empty_success(self, service, repository, make_hits, ids):
        orphan = {"id": ids.resource_group, "type": ["iudx:ResourceGroup"]}
        repository.search.return_value = make_hits(orphan)

        envelope = await service.resolve(RelationshipRequest(ids.resource_group, "resourceServer"))

        assert envelope.status == ResponseStatus.SUCCESS
        assert envelope.total_hits == 0
        repository.search.assert_awaited_once()


class TestDownwardTraversal:
    @pytest.mark.asyncio
    async def test_resource_server_to_resource_groups(
        self, service, repository, make_hits, ids, resource_server_doc, resource_group_doc
    ):
        repository.search.side_effect = [
            make_hits(resource_server_doc),
            make_hits({"id": ids.provider}),
            make_hits(resource_group_doc),
        ]

        envelope = await service.resolve(RelationshipRequest(ids.resource_server, "resourceGroup"))

        assert envelope.results == [resource_group_doc]
        _, provider_lookup, final = _queries(repository)
        assert provider_lookup.query.filter == (
            QueryModel.term("type.keyword", "iudx:Provider"),
            QueryModel.terms("resourceServer.keyword", [ids.resource_server]),
        )
        assert final.query.must == (QueryModel.terms("provider.keyword", [ids.provider]),)

    @pytest.mark.asyncio
    async def test_provider_to_resource_groups(
        self, service, repository, make_hits, ids, provider_doc, resource_group_doc
    ):
        repository.search.side_effect = [make_hits(provider_doc), make_hits(resource_group_doc)]

        await service.resolve(RelationshipRequest(ids.provider, "resourceGroup"))

        final = _queries(repository)[1]
        assert final.query.filter == (QueryModel.term("type.keyword", "iudx:ResourceGroup"),)
        assert final.query.must == (QueryModel.terms("provider.keyword", [ids.provider]),)

    @pytest.mark.asyncio
    async def test_no_intermediates_is_empty_success(
        self, service, repository, make_hits, ids, resource_server_doc
    ):
        repository.search.side_effect = [make_hits(resource_server_doc), make_hits()]

        envelope = await service.resolve(RelationshipRequest(ids.resource_server, "resourceGroup"))

        assert envelope.total_hits == 0
        assert repository.search.await_count == 2


class TestAllRelationship:
    @pytest.mark.asyncio
    async def test_resource_group_all(
        self, service, repository, make_hits, ids, resource_group_doc, provider_doc, cos_doc, resource_doc
    ):
        repository.search.side_effect = [
            make_hits(resource_group_doc),
            make_hits(provider_doc),
            make_hits(cos_doc),
            make_hits(provider_doc, resource_doc),
        ]

        envelope = await service.resolve(RelationshipRequest(ids.resource_group, "all"))

        assert envelope.total_hits == 2
        final = _queries(repository)[-1]
        assert final.query.should == (
            QueryModel.terms("id.keyword", [ids.provider, ids.resource_server, ids.cos, ids.owner]),
            QueryModel.term("resourceGroup.keyword", ids.resource_group),
        )
        assert final.query.minimum_should_match == 1

    @pytest.mark.asyncio
    async def test_cos_all_is_invalid(self, service, repository, make_hits, ids, cos_doc):
        repository.search.return_value = make_hits(cos_doc)
        with pytest.raises(InvalidRelationshipError):
            await service.resolve(RelationshipRequest(ids.cos, "all"))


class TestInvalidRequests:
    @pytest.mark.asyncio
    async def test_relationship_to_own_type(self, service, repository, make_hits, ids, resource_group_doc):
        repository.search.return_value = make_hits(resource_group_doc)

        with pytest.raises(InvalidRelationshipError) as exc_info:
            await service.resolve(RelationshipRequest(ids.resource_group, "resourceGroup"))

        assert exc_info.value.details["anchor_type"] == "resourceGroup"
        repository.search.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_relationship_name(self, service, repository, ids):
        with pytest.raises(InvalidRelationshipError):
            await service.resolve(RelationshipRequest(ids.resource_group, "sibling"))
        repository.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_anchor(self, service, repository, make_hits):
        repository.search.return_value = make_hits()
        with pytest.raises(ItemNotFoundError):
            await service.resolve(RelationshipRequest("does-not-exist", "provider"))
