# app/api/schemas/relationship.py
#
# Description:
# This file defines the query parameters of the relationship endpoints.

from pydantic import BaseModel
from typing import Optional

class RelationshipParams(BaseModel):
    """
    Query parameters of /relationship.
    """
    id: str
    rel: str  # resource, resourceGroup, provider, resourceServer, cos or all
    limit: Optional[int] = None
    offset: Optional[int] = None

class RelSearchParams(BaseModel):
    """
    Query parameters of /relsearch, e.g. relationship=[provider.name]&value=[[Pune]].
    """
    relationship: str
    value: str
    limit: Optional[int] = None
    offset: Optional[int] = None
