"""
Pelias geocoding adapter.

Implements the GeocodingService port with a Pelias ``/v1/search`` call.
Every feature sharing the highest confidence becomes a candidate region, so an
ambiguous place name (two towns with the same name) yields several regions.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from core.domain.exceptions import LocationNotFoundError
from core.domain.models import GeoRegion
from core.ports.services import GeocodingService

logger = logging.getLogger(__name__)

REGION_FIELDS = ("borough", "locality", "county", "region", "country")


def select_regions(payload: Dict[str, Any]) -> List[GeoRegion]:
    """Regions for the features with maximal ``properties.confidence``."""
    features = payload.get("features") or []
    if not features:
        return []

    def confidence(feature: Dict[str, Any]) -> float:
        return float((feature.get("properties") or {}).get("confidence") or 0.0)

    best = max(confidence(feature) for feature in features)
    regions = []
    for feature in features:
        if confidence(feature) != best:
            continue
        properties = feature.get("properties") or {}
        bbox = feature.get("bbox")
        regions.append(
            GeoRegion(
                bbox=list(bbox) if bbox and len(bbox) == 4 else None,
                confidence=best,
                **{name: properties.get(name) for name in REGION_FIELDS},
            )
        )
    return regions


class PeliasGeocodingAdapter(GeocodingService):
    """Adapter for a Pelias geocoder."""

    def __init__(self, geocoding_url: str = "http://localhost:4000", timeout: float = 10.0):
        self.geocoding_url = geocoding_url.rstrip('/')
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def geocode(self, place: str) -> List[GeoRegion]:
        """
        Resolve a place name to candidate regions.

        Raises:
            LocationNotFoundError: Transport failure, non-200 status or no features
        """
        session = await self._get_session()
        try:
            async with session.get(f"{self.geocoding_url}/v1/search", params={"text": place}) as response:
                if response.status != 200:
                    logger.error(f"Geocoder returned {response.status} for '{place}'")
                    raise LocationNotFoundError(place, {"status": response.status})
                payload = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Network error communicating with geocoder: {e}")
            raise LocationNotFoundError(place, {"reason": "geocoder unreachable"}, cause=e)

        regions = select_regions(payload)
        if not regions:
            raise LocationNotFoundError(place, {"reason": "no features"})
        logger.info(f"Geocoded '{place}' to {len(regions)} region(s)")
        return regions

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
