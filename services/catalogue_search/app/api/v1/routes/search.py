# app/api/v1/routes/search.py
#
# Description:
# This module implements the search, count and natural-language search endpoints.
# Query parameters are collected here and handed to the catalogue facade;
# domain errors are rendered by the application's exception handlers.

from typing import Optional

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import JSONResponse

from app.api.schemas.search import SearchParams
from adapters.api_facade import get_catalogue_facade

# Create an API router for the search functionality
router = APIRouter(tags=["search"])


def search_params(
    property: Optional[str] = Query(None),
    value: Optional[str] = Query(None),
    geoproperty: Optional[str] = Query(None),
    georel: Optional[str] = Query(None),
    geometry: Optional[str] = Query(None),
    coordinates: Optional[str] = Query(None),
    max_distance: Optional[float] = Query(None, alias="maxDistance"),
    q: Optional[str] = Query(None),
    tags: Optional[str] = Query(None),
    timerel: Optional[str] = Query(None),
    time: Optional[str] = Query(None),
    endtime: Optional[str] = Query(None),
    timeproperty: Optional[str] = Query(None),
    rangerel: Optional[str] = Query(None),
    rangeproperty: Optional[str] = Query(None),
    rangevalue: Optional[str] = Query(None),
    filter: Optional[str] = Query(None),
    limit: Optional[int] = Query(None),
    offset: Optional[int] = Query(None),
    page: Optional[int] = Query(None),
) -> SearchParams:
    """Collect the bracket-syntax search parameters into one model."""
    return SearchParams(
        property=property, value=value,
        geoproperty=geoproperty, georel=georel, geometry=geometry,
        coordinates=coordinates, max_distance=max_distance,
        q=q, tags=tags,
        timerel=timerel, time=time, endtime=endtime, timeproperty=timeproperty,
        rangerel=rangerel, rangeproperty=rangeproperty, rangevalue=rangevalue,
        filter=filter, limit=limit, offset=offset, page=page,
    )


@router.get("/search")
async def search(params: SearchParams = Depends(search_params), instance: Optional[str] = Header(None)):
    """
    Search catalogue items by attribute, geo, temporal, range, text and tag criteria.

    Returns:
        JSONResponse: 200 with the page of results, or 206 when the backend
        reported incomplete results
    """
    status_code, response = await get_catalogue_facade().search(params, instance)
    return JSONResponse(status_code=status_code, content=response.model_dump(by_alias=True, exclude_none=True))


@router.get("/count")
async def count(params: SearchParams = Depends(search_params), instance: Optional[str] = Header(None)):
    """
    Count catalogue items matching the same criteria as /search.
    """
    status_code, response = await get_catalogue_facade().count(params, instance)
    return JSONResponse(status_code=status_code, content=response.model_dump(by_alias=True, exclude_none=True))


@router.get("/nlpsearch")
async def nlp_search(q: str = Query(..., min_length=1)):
    """
    Natural-language search, optionally scoped to a place named in the query.

    Returns:
        JSONResponse: 200 with merged results, or 404 when nothing matched
    """
    status_code, response = await get_catalogue_facade().nlp_search(q)
    return JSONResponse(status_code=status_code, content=response.model_dump(by_alias=True, exclude_none=True))
