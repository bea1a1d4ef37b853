# app/api/v1/routes/list.py
#
# Description:
# This module implements the list-by-type endpoint.

from typing import Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse

from app.api.schemas.search import ListParams
from adapters.api_facade import get_catalogue_facade

router = APIRouter(tags=["list"])


@router.get("/list/{item_type}")
async def list_items(item_type: str, params: ListParams = Depends(), instance: Optional[str] = Header(None)):
    """
    List distinct instances, resourceGroups, resourceServers, providers or tags,
    or the owner/cos documents.
    """
    status_code, response = await get_catalogue_facade().list_items(item_type, params, instance)
    return JSONResponse(status_code=status_code, content=response.model_dump(by_alias=True, exclude_none=True))
