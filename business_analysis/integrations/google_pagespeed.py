"""Google PageSpeed Insights integration for Lighthouse category scores."""

import asyncio
import logging
import os
from typing import Any, Optional

import httpx

from business_analysis.utils.helpers import round_half_up
from business_analysis.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

PAGESPEED_API_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"

LIGHTHOUSE_CATEGORIES = ["performance", "seo", "accessibility", "best-practices"]


class PageSpeedInsights:
    """Client for the Google PageSpeed Insights API.

    Usage::

        psi = PageSpeedInsights(api_key="your-key")
        scores = await psi.lighthouse_scores("https://example.com")
        scores["performance"]  # 0-100 or None
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        requests_per_minute: Optional[int] = None,
        timeout: float = 120.0,
        max_retries: int = 3,
    ):
        self._api_key = api_key or os.getenv("PAGESPEED_API_KEY", "")
        # Google throttles keyless callers much harder.
        rpm = requests_per_minute or (10 if self._api_key else 3)
        self._limiter = RateLimiter(rpm, 60.0, name="pagespeed")
        self._timeout = timeout
        self._max_retries = max_retries
        self._semaphore: Optional[asyncio.Semaphore] = None

        if not self._api_key:
            logger.warning(
                "No PAGESPEED_API_KEY set. Using free tier with strict rate limits."
            )

    async def _request_with_retry(self, client: httpx.AsyncClient,
                                  params: list[tuple[str, str]]) -> dict[str, Any]:
        """GET with exponential backoff on 429 errors and timeouts."""
        for attempt in range(self._max_retries + 1):
            await self._limiter.acquire()
            try:
                response = await client.get(PAGESPEED_API_URL, params=params)
                if response.status_code == 429 and attempt < self._max_retries:
                    # 30s, 60s, 120s
                    wait = 30 * (2 ** attempt)
                    logger.warning(
                        "PageSpeed 429 Too Many Requests. Retry %d/%d in %ds...",
                        attempt + 1, self._max_retries, wait,
                    )
                    await asyncio.sleep(wait)
                    continue
                response.raise_for_status()
                return response.json()
            except httpx.TimeoutException:
                if attempt < self._max_retries:
                    wait = 10 * (2 ** attempt)
                    logger.warning(
                        "PageSpeed timeout. Retry %d/%d in %ds...",
                        attempt + 1, self._max_retries, wait,
                    )
                    await asyncio.sleep(wait)
                    continue
                raise
        return {}

    async def analyze_url(
        self,
        url: str,
        strategy: str = "mobile",
        categories: Optional[list[str]] = None,
    ) -> dict[str, Any]:
        """Run a PageSpeed analysis on a URL.

        Args:
            url: The URL to analyze.
            strategy: ``mobile`` or ``desktop``.
            categories: Lighthouse categories to request.

        Returns:
            Dict with ``scores`` (category -> 0-100) and ``metrics``.

        Raises:
            httpx.HTTPError: When the API keeps failing.
        """
        params = [("url", url), ("strategy", strategy)]
        if self._api_key:
            params.append(("key", self._api_key))
        for cat in categories or LIGHTHOUSE_CATEGORIES:
            params.append(("category", cat))

        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(2 if self._api_key else 1)
        async with self._semaphore:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                data = await self._request_with_retry(client, params)

        lighthouse = data.get("lighthouseResult", {})
        scores = {
            key: round_half_up((cat.get("score") or 0) * 100)
            for key, cat in lighthouse.get("categories", {}).items()
        }
        result = {
            "url": url,
            "strategy": strategy,
            "scores": scores,
            "metrics": self._extract_metrics(lighthouse.get("audits", {})),
        }
        logger.info("PageSpeed analysis for %s: %s", url, scores)
        return result

    async def lighthouse_scores(self, url: str,
                                strategy: str = "mobile") -> dict[str, Optional[int]]:
        """Lighthouse category scores, each ``None`` when unavailable.

        Never raises; API failures are logged and yield all-``None`` scores.
        """
        try:
            analysis = await self.analyze_url(url, strategy=strategy)
        except httpx.HTTPError as exc:
            logger.warning("PageSpeed API error for %s: %s", url, exc)
            return {cat: None for cat in LIGHTHOUSE_CATEGORIES}
        scores = analysis["scores"]
        return {cat: scores.get(cat) for cat in LIGHTHOUSE_CATEGORIES}

    @staticmethod
    def _extract_metrics(audits: dict) -> dict[str, Optional[float]]:
        metric_keys = [
            "first-contentful-paint",
            "largest-contentful-paint",
            "cumulative-layout-shift",
            "speed-index",
            "total-blocking-time",
            "server-response-time",
        ]
        metrics = {}
        for key in metric_keys:
            val = audits.get(key, {}).get("numericValue")
            metrics[key] = round(val, 2) if val is not None else None
        return metrics
