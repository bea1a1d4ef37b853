"""
API tests for the v1 routes and the domain exception handlers.

The catalogue facade is replaced with a mock so no backend is needed.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock, patch

from app.api.exception_handlers import ExceptionMessageHandler
from app.api.schemas.common import CatalogueResponse
from app.main import app
from core.domain.exceptions import (
    BackendUnavailableError,
    InvalidGeometryError,
    InvalidRelationshipError,
    ItemNotFoundError,
    SearchTimeoutError,
)


def catalogue_response(status="success", total_hits=1, results=None, type_="urn:dx:cat:Success", detail=None):
    return CatalogueResponse(
        type=type_,
        title="Success",
        status=status,
        total_hits=total_hits,
        results=results if results is not None else [{"id": "a"}],
        detail=detail,
    )


@pytest.fixture
def facade():
    return MagicMock()


@pytest.fixture
def client(facade):
    with patch("app.api.v1.routes.search.get_catalogue_facade", return_value=facade), \
         patch("app.api.v1.routes.relationship.get_catalogue_facade", return_value=facade), \
         patch("app.api.v1.routes.list.get_catalogue_facade", return_value=facade), \
         patch("app.api.v1.routes.health.get_catalogue_facade", return_value=facade):
        yield TestClient(app)


class TestSearchRoutes:
    def test_search(self, client, facade):
        facade.search = AsyncMock(return_value=(200, catalogue_response(total_hits=12)))

        response = client.get(
            "/v1/search",
            params={"geoproperty": "location", "georel": "near", "geometry": "Point",
                    "coordinates": "[73.85,18.52]", "maxDistance": "5000"},
            headers={"instance": "pune"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["totalHits"] == 12
        assert body["results"] == [{"id": "a"}]
        params, instance = facade.search.await_args.args
        assert params.max_distance == 5000
        assert params.geometry == "Point"
        assert instance == "pune"

    def test_partial_content(self, client, facade):
        facade.search = AsyncMock(
            return_value=(206, catalogue_response(status="partial", type_="urn:dx:cat:PartialContent"))
        )
        response = client.get("/v1/search", params={"q": "flood"})
        assert response.status_code == 206
        assert response.json()["status"] == "partial"

    def test_count(self, client, facade):
        facade.count = AsyncMock(return_value=(200, catalogue_response(total_hits=57, results=[])))
        response = client.get("/v1/count", params={"q": "flood"})
        assert response.status_code == 200
        assert response.json()["totalHits"] == 57

    def test_nlp_search_not_found(self, client, facade):
        facade.nlp_search = AsyncMock(
            return_value=(404, catalogue_response(
                status="failed", total_hits=0, results=[],
                type_="urn:dx:cat:ItemNotFound", detail="NLP Search Failed",
            ))
        )
        response = client.get("/v1/nlpsearch", params={"q": "unicorns"})
        assert response.status_code == 404
        assert response.json()["detail"] == "NLP Search Failed"

    def test_nlp_search_requires_query(self, client, facade):
        response = client.get("/v1/nlpsearch")
        assert response.status_code == 422


class TestRelationshipAndListRoutes:
    def test_relationship(self, client, facade):
        facade.relationship = AsyncMock(return_value=(200, catalogue_response()))
        response = client.get("/v1/relationship", params={"id": "rg-1", "rel": "provider"})
        assert response.status_code == 200
        params = facade.relationship.await_args.args[0]
        assert (params.id, params.rel) == ("rg-1", "provider")

    def test_rel_search(self, client, facade):
        facade.rel_search = AsyncMock(return_value=(200, catalogue_response()))
        response = client.get("/v1/relsearch", params={"relationship": "[provider.name]", "value": "[[Pune]]"})
        assert response.status_code == 200

    def test_list(self, client, facade):
        facade.list_items = AsyncMock(return_value=(200, catalogue_response(results=["p-1", "p-2"], total_hits=2)))
        response = client.get("/v1/list/provider", params={"limit": 10})
        assert response.status_code == 200
        item_type, params, instance = facade.list_items.await_args.args
        assert item_type == "provider"
        assert params.limit == 10
        assert instance is None

    def test_health(self, client, facade):
        facade.backend_healthy = AsyncMock(return_value=False)
        response = client.get("/v1/health")
        assert response.status_code == 503
        assert response.json()["opensearch"] == "down"


class TestDomainErrors:
    """Domain exceptions are rendered as catalogue error envelopes."""

    def test_invalid_geometry(self, client, facade):
        facade.search = AsyncMock(side_effect=InvalidGeometryError("bbox needs exactly two positions"))
        response = client.get("/v1/search", params={"geometry": "bbox"})
        assert response.status_code == 400
        assert response.json() == {
            "type": "urn:dx:cat:InvalidGeoValue",
            "title": "Invalid geometry",
            "detail": "bbox needs exactly two positions",
        }

    def test_invalid_relationship(self, client, facade):
        facade.relationship = AsyncMock(side_effect=InvalidRelationshipError("resourceGroup", "resourceGroup"))
        response = client.get("/v1/relationship", params={"id": "rg-1", "rel": "resourceGroup"})
        assert response.status_code == 400
        body = response.json()
        assert body["type"] == "urn:dx:cat:InvalidRelationshipValue"
        assert "relationship=resourceGroup" in body["detail"]

    def test_item_not_found(self, client, facade):
        facade.relationship = AsyncMock(side_effect=ItemNotFoundError("anchor item does not exist"))
        response = client.get("/v1/relationship", params={"id": "missing", "rel": "provider"})
        assert response.status_code == 404
        assert response.json()["type"] == "urn:dx:cat:ItemNotFound"

    def test_backend_unavailable(self, client, facade):
        facade.search = AsyncMock(side_effect=BackendUnavailableError("connection refused"))
        response = client.get("/v1/search", params={"q": "flood"})
        assert response.status_code == 500
        assert response.json()["type"] == "urn:dx:cat:InternalServerError"

    def test_timeout_status(self):
        assert ExceptionMessageHandler.get_http_status_code(SearchTimeoutError(30.0)) == 504
