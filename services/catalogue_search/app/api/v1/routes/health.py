# app/api/v1/routes/health.py
#
# Description:
# This module provides the health check endpoint.
# It reports whether the catalogue index backend is reachable.

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from adapters.api_facade import get_catalogue_facade

# Create an API router for the health check
router = APIRouter(tags=["health"])

@router.get("/health")
async def health():
    """
    Health check endpoint.

    Returns:
        JSONResponse: {"status": "ok"} when OpenSearch answers, 503 otherwise.
    """
    if await get_catalogue_facade().backend_healthy():
        return JSONResponse(status_code=200, content={"status": "ok", "opensearch": "up"})
    return JSONResponse(status_code=503, content={"status": "degraded", "opensearch": "down"})
