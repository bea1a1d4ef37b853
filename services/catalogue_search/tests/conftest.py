"""
Shared fixtures for catalogue search tests.

Item documents model one small catalogue: a cos owning a resource server, a
provider on that server, a resource group of that provider and one resource.
"""

from types import SimpleNamespace

import pytest
from unittest.mock import AsyncMock

from core.domain.models import SearchHits
from core.domain.query_decoder import QueryDecoder
from core.ports.repositories import ItemSearchRepository

TEXT_FIELDS = ["label", "description", "tags", "name", "descriptor", "instance"]

OWNER_ID = "owner-iudx"
COS_ID = "cos.iudx.org.in"
RS_ID = "rs.iudx.org.in"
PROVIDER_ID = "pune-smartcity-provider"
RG_ID = "pune-smartcity-provider/rs.iudx.org.in/flood-sensors"
RESOURCE_ID = "pune-smartcity-provider/rs.iudx.org.in/flood-sensors/sensor-01"


@pytest.fixture
def decoder() -> QueryDecoder:
    return QueryDecoder(
        text_search_fields=TEXT_FIELDS,
        vector_field="_word_vector",
        default_page_size=100,
        max_result_window=10000,
    )


@pytest.fixture
def repository():
    """ItemSearchRepository whose async methods are AsyncMocks."""
    return AsyncMock(spec=ItemSearchRepository)


@pytest.fixture
def make_hits():
    def _make_hits(*documents, total=None, timed_out=False, failed_shards=0, buckets=None):
        return SearchHits(
            documents=list(documents),
            total_hits=len(documents) if total is None else total,
            buckets=buckets or {},
            timed_out=timed_out,
            failed_shards=failed_shards,
        )
    return _make_hits


@pytest.fixture
def cos_doc():
    return {"id": COS_ID, "type": ["iudx:COS"], "owner": OWNER_ID, "name": "iudx-cos"}


@pytest.fixture
def resource_server_doc():
    return {"id": RS_ID, "type": ["iudx:ResourceServer"], "cos": COS_ID, "name": "pune-rs"}


@pytest.fixture
def provider_doc():
    return {
        "id": PROVIDER_ID,
        "type": ["iudx:Provider"],
        "resourceServer": RS_ID,
        "cos": COS_ID,
        "name": "Pune Smart City",
    }


@pytest.fixture
def resource_group_doc():
    return {
        "id": RG_ID,
        "type": ["iudx:ResourceGroup"],
        "provider": PROVIDER_ID,
        "label": "Flood sensors",
        "tags": ["flood", "water level"],
    }


@pytest.fixture
def resource_doc():
    return {
        "id": RESOURCE_ID,
        "type": ["iudx:Resource"],
        "resourceGroup": RG_ID,
        "provider": PROVIDER_ID,
        "resourceServer": RS_ID,
        "cos": COS_ID,
        "label": "Flood sensor 01",
    }


@pytest.fixture
def ids():
    """Ids of the catalogue items above, by type name."""
    return SimpleNamespace(
        owner=OWNER_ID,
        cos=COS_ID,
        resource_server=RS_ID,
        provider=PROVIDER_ID,
        resource_group=RG_ID,
        resource=RESOURCE_ID,
    )
