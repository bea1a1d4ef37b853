"""
NLP embedding service adapter.

Implements the EmbeddingService port against the catalogue's NLP service,
which embeds a query text and extracts the place name mentioned in it:

    GET {nlp_service_url}/search?q=<text>
    -> {"result": [0.12, ...], "location": "<place>" | "EMPTY"}
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from core.domain.exceptions import EmbeddingUnavailableError
from core.domain.models import EmbeddingResult
from core.ports.services import EmbeddingService

logger = logging.getLogger(__name__)

NO_LOCATION = "EMPTY"


class NlpEmbeddingAdapter(EmbeddingService):
    """
    Adapter for the NLP embedding service.

    Failures are not retried; any transport error, non-200 status or missing
    vector is reported as EmbeddingUnavailableError.
    """

    def __init__(self, nlp_service_url: str = "http://localhost:8004", timeout: float = 10.0):
        """
        Initialize the NLP adapter.

        Args:
            nlp_service_url: Base URL for the NLP service
            timeout: Request timeout in seconds
        """
        self.nlp_service_url = nlp_service_url.rstrip('/')
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def embed(self, text: str) -> EmbeddingResult:
        session = await self._get_session()
        try:
            async with session.get(f"{self.nlp_service_url}/search", params={"q": text}) as response:
                if response.status != 200:
                    error_text = await response.text()
                    logger.error(f"NLP service returned {response.status}: {error_text[:200]}")
                    raise EmbeddingUnavailableError(
                        f"NLP service error {response.status}",
                        {"status": response.status},
                    )
                payload = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Network error communicating with NLP service: {e}")
            raise EmbeddingUnavailableError(str(e) or type(e).__name__, cause=e)

        vector = payload.get("result")
        if not isinstance(vector, list) or not vector:
            raise EmbeddingUnavailableError("NLP service returned no vector")

        location = payload.get("location")
        if not location or location == NO_LOCATION:
            location = None
        logger.debug(f"Embedded query into {len(vector)} dims, location={location}")
        return EmbeddingResult(vector=vector, location=location)

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
