"""SerpAPI client for Google web searches with local (map pack) results."""

import asyncio
import logging
import os
from typing import Any, Optional

import httpx

from business_analysis.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

SERPAPI_URL = "https://serpapi.com/search.json"


class SerpApiError(RuntimeError):
    """SerpAPI answered with an ``error`` field or no payload."""


class SerpApiClient:
    """Thin async wrapper around the SerpAPI ``google`` engine.

    Usage::

        serp = SerpApiClient(api_key="...")
        data = await serp.search("plumber austin", location="Austin,Texas,United States")
        data["organic_results"], data["local_results"]
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        requests_per_minute: int = 30,
        language: str = "en",
        country: str = "us",
    ):
        self._api_key = api_key or os.getenv("SERPAPI_KEY", "")
        self._timeout = timeout
        self._max_retries = max_retries
        self._language = language
        self._country = country
        self._limiter = RateLimiter(requests_per_minute, 60.0, name="serpapi")

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def search(self, query: str, location: Optional[str] = None) -> dict[str, Any]:
        """Run one Google search and return the raw SerpAPI JSON.

        Raises:
            RuntimeError: If no API key is configured.
            SerpApiError: If SerpAPI reports an error.
            httpx.HTTPError: On transport failures after retries.
        """
        if not self._api_key:
            raise RuntimeError("SerpAPI key is not configured")

        params: dict[str, Any] = {
            "engine": "google",
            "q": query,
            "hl": self._language,
            "gl": self._country,
            "api_key": self._api_key,
        }
        if location:
            params["location"] = location
        logger.debug("SerpAPI request: q=%r location=%r", query, location)

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            data = await self._request_with_retry(client, params)

        if not data:
            raise SerpApiError("No response from SerpAPI")
        if data.get("error"):
            raise SerpApiError(f"SerpAPI error: {data['error']}")

        logger.debug(
            "SerpAPI response for %r: organic=%d local=%d",
            query, len(data.get("organic_results") or []), len(data.get("local_results") or []),
        )
        return data

    async def _request_with_retry(self, client: httpx.AsyncClient,
                                  params: dict[str, Any]) -> dict[str, Any]:
        """GET with exponential backoff on 429 responses and timeouts."""
        for attempt in range(self._max_retries + 1):
            await self._limiter.acquire()
            try:
                response = await client.get(SERPAPI_URL, params=params)
                if response.status_code == 429 and attempt < self._max_retries:
                    wait = 5 * (2 ** attempt)
                    logger.warning(
                        "SerpAPI 429 Too Many Requests. Retry %d/%d in %ds...",
                        attempt + 1, self._max_retries, wait,
                    )
                    await asyncio.sleep(wait)
                    continue
                response.raise_for_status()
                return response.json()
            except httpx.TimeoutException:
                if attempt < self._max_retries:
                    wait = 2 * (2 ** attempt)
                    logger.warning(
                        "SerpAPI timeout. Retry %d/%d in %ds...",
                        attempt + 1, self._max_retries, wait,
                    )
                    await asyncio.sleep(wait)
                    continue
                raise
        return {}
