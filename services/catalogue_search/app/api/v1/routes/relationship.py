# app/api/v1/routes/relationship.py
#
# Description:
# This module implements the relationship traversal and relationship search endpoints.

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.schemas.relationship import RelSearchParams, RelationshipParams
from adapters.api_facade import get_catalogue_facade

router = APIRouter(tags=["relationship"])


@router.get("/relationship")
async def relationship(params: RelationshipParams = Depends()):
    """
    Items related to the item ``id`` through relationship ``rel``.
    """
    status_code, response = await get_catalogue_facade().relationship(params)
    return JSONResponse(status_code=status_code, content=response.model_dump(by_alias=True, exclude_none=True))


@router.get("/relsearch")
async def rel_search(params: RelSearchParams = Depends()):
    """
    Items under parents of a given type whose attribute matches a value.
    """
    status_code, response = await get_catalogue_facade().rel_search(params)
    return JSONResponse(status_code=status_code, content=response.model_dump(by_alias=True, exclude_none=True))
