# app/api/schemas/common.py
#
# Description:
# This file defines the response envelopes shared by every catalogue endpoint.
# Success, partial and not-found outcomes use CatalogueResponse; domain errors
# use ErrorResponse.

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional

class CatalogueResponse(BaseModel):
    """
    Uniform result envelope.
    ``totalHits`` is the full match count, independent of the returned page.
    """
    model_config = ConfigDict(populate_by_name=True)

    type: str
    title: str
    status: str  # "success", "partial", "failed"
    total_hits: int = Field(0, alias="totalHits")
    results: List[Any] = Field(default_factory=list)
    detail: Optional[str] = None

class ErrorResponse(BaseModel):
    """
    Error envelope returned for rejected or failed requests.
    """
    type: str  # e.g. "urn:dx:cat:InvalidGeometry"
    title: str
    detail: Optional[str] = None
