"""Search ranking analyzer: map pack and organic positions per keyword."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional, Sequence

from business_analysis.integrations.serpapi_client import SerpApiClient
from business_analysis.modules.analysis.entities import (
    AnalysisFailure,
    CompetitorSummary,
    KeywordRanking,
    LocalSeoMetrics,
    MapPackCompetitor,
    OrganicCompetitor,
    RankingsSummary,
    SerpAnalysis,
    SerpResult,
)
from business_analysis.utils.helpers import round_half_up, round_to

logger = logging.getLogger(__name__)

MAP_PACK_COMPETITORS_KEPT = 3
ORGANIC_COMPETITORS_KEPT = 10
TOP_COMPETITORS = 10
DEFAULT_LOCATION = "United States"

US_STATES = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "FL": "Florida", "GA": "Georgia", "HI": "Hawaii", "ID": "Idaho",
    "IL": "Illinois", "IN": "Indiana", "IA": "Iowa", "KS": "Kansas",
    "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi",
    "MO": "Missouri", "MT": "Montana", "NE": "Nebraska", "NV": "Nevada",
    "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico", "NY": "New York",
    "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio", "OK": "Oklahoma",
    "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah",
    "VT": "Vermont", "VA": "Virginia", "WA": "Washington", "WV": "West Virginia",
    "WI": "Wisconsin", "WY": "Wyoming",
}


# ------------------------------------------------------------------
# Pure helpers
# ------------------------------------------------------------------

def generate_default_keywords(business_name: str, location: str,
                              industry: Optional[str] = None) -> list[str]:
    """Keywords to track when the caller supplies none."""
    keywords = [business_name, f"{business_name} {location}", f"{business_name} near me"]
    if industry:
        keywords += [
            f"{industry} {location}",
            f"{industry} near me",
            f"best {industry} {location}",
            f"{industry} services {location}",
        ]
    parts = [p.strip() for p in location.split(",")]
    if len(parts) > 1:
        city = parts[0]
        keywords.append(f"{business_name} {city}")
        keywords.append(f"{industry} {city}" if industry else f"{business_name} {city}")
    return keywords


def to_supported_location(address: str) -> str:
    """Convert a street address into a SerpAPI location string.

    Examples:
        >>> to_supported_location("5337 US-321, Gaston, SC 29053, United States")
        'Gaston,South Carolina,United States'
        >>> to_supported_location("Somewhere")
        'United States'
    """
    parts = [p.strip() for p in (address or "").split(",")]
    if len(parts) < 2:
        return DEFAULT_LOCATION

    for i, part in enumerate(parts):
        for word in part.split():
            state = US_STATES.get(word.strip())
            if state is None:
                continue
            if i > 0:
                return f"{parts[i - 1]},{state},{DEFAULT_LOCATION}"
            return f"{state},{DEFAULT_LOCATION}"
    return DEFAULT_LOCATION


def find_business_position(results: Sequence[dict[str, Any]],
                           business_name: str) -> Optional[int]:
    """1-based position of the first result naming the business, or None."""
    needle = business_name.lower()
    for index, result in enumerate(results or [], start=1):
        if not result:
            continue
        title = (result.get("title") or "").lower()
        snippet = (result.get("snippet") or "").lower()
        if needle in title or needle in snippet:
            return index
    return None


def estimate_search_volume(keyword: str) -> str:
    """Rough volume bucket from keyword shape alone."""
    has_location = "near me" in keyword.lower() or "," in keyword
    is_specific = len(keyword.split(" ")) > 3
    if has_location and is_specific:
        return "Low (100-500)"
    if has_location:
        return "Medium (500-2000)"
    if len(keyword) < 15:
        return "High (2000+)"
    return "Low (100-500)"


def _is_other_business(result: dict[str, Any], needle: str) -> bool:
    return needle not in (result.get("title") or "").lower()


def extract_competitors(organic: Sequence[dict[str, Any]], local: Sequence[dict[str, Any]],
                        business_name: str) -> tuple[list[MapPackCompetitor], list[OrganicCompetitor]]:
    """Split raw results into map-pack and organic competitors, excluding the business."""
    needle = business_name.lower()
    local_comps = [
        MapPackCompetitor(
            name=r.get("title") or "",
            position=i,
            rating=r.get("rating"),
            reviews=r.get("reviews"),
            address=r.get("address"),
            phone=r.get("phone"),
            website=r.get("website"),
            type=r.get("type"),
        )
        for i, r in enumerate((r for r in local if _is_other_business(r, needle)), start=1)
    ]
    organic_comps = [
        OrganicCompetitor(
            name=r.get("title") or "",
            position=i,
            url=r.get("link"),
            snippet=r.get("snippet"),
            displayed_link=r.get("displayed_link"),
        )
        for i, r in enumerate((r for r in organic if _is_other_business(r, needle)), start=1)
    ]
    return local_comps, organic_comps


def summarize_rankings(results: Sequence[KeywordRanking], total_keywords: int,
                       failed: int) -> RankingsSummary:
    map_positions = [r.local_position for r in results if r.local_position is not None]
    organic_positions = [r.organic_position for r in results if r.organic_position is not None]
    return RankingsSummary(
        total_keywords=total_keywords,
        successful_analyses=len(results),
        failed_analyses=failed,
        average_map_pack_position=(
            sum(map_positions) / len(map_positions) if map_positions else None
        ),
        average_organic_position=(
            sum(organic_positions) / len(organic_positions) if organic_positions else None
        ),
        map_pack_appearances=sum(1 for r in results if r.in_map_pack),
        organic_appearances=len(organic_positions),
        keywords_in_top_3_map_pack=sum(1 for r in results if r.in_top_3_map_pack),
        keywords_in_top_10_organic=sum(1 for r in results if r.in_top_10_organic),
    )


def aggregate_competitors(results: Sequence[KeywordRanking]) -> list[CompetitorSummary]:
    """Roll competitors up across keywords; top ten by appearances."""
    seen: dict[str, dict[str, Any]] = {}

    def _record(name: str, position: int, defaults: dict[str, Any]) -> None:
        entry = seen.setdefault(name, {"name": name, "positions": [], **defaults})
        entry["positions"].append(position)

    for result in results:
        for comp in result.competitors_in_map_pack:
            _record(comp.name, comp.position, {
                "type": "local", "rating": comp.rating, "reviews": comp.reviews,
                "address": comp.address, "website": comp.website,
            })
        for comp in result.competitors_in_organic:
            _record(comp.name, comp.position, {"type": "organic", "url": comp.url})

    summaries = [
        CompetitorSummary(
            name=entry["name"],
            type=entry["type"],
            appearances=len(entry["positions"]),
            average_position=sum(entry["positions"]) / len(entry["positions"]),
            positions=tuple(entry["positions"]),
            rating=entry.get("rating"),
            reviews=entry.get("reviews"),
            address=entry.get("address"),
            website=entry.get("website"),
            url=entry.get("url"),
        )
        for entry in seen.values()
    ]
    summaries.sort(key=lambda c: c.appearances, reverse=True)
    return summaries[:TOP_COMPETITORS]


def local_seo_metrics(summary: RankingsSummary) -> LocalSeoMetrics:
    """Visibility percentages and the 60/40 weighted local SEO score."""
    map_visibility = (
        summary.keywords_in_top_3_map_pack / summary.map_pack_appearances * 100
        if summary.map_pack_appearances else 0.0
    )
    organic_visibility = (
        summary.keywords_in_top_10_organic / summary.organic_appearances * 100
        if summary.organic_appearances else 0.0
    )
    score = map_visibility * 0.6 + organic_visibility * 0.4
    avg_map = summary.average_map_pack_position
    avg_org = summary.average_organic_position
    return LocalSeoMetrics(
        map_pack_visibility=round_half_up(map_visibility),
        organic_visibility=round_half_up(organic_visibility),
        local_seo_score=round_half_up(score),
        average_map_pack_position=round_to(avg_map, 1) if avg_map else None,
        average_organic_position=round_to(avg_org, 1) if avg_org else None,
    )


# ------------------------------------------------------------------
# Analyzer
# ------------------------------------------------------------------

class SearchRankingAnalyzer:
    """Track where a business ranks for its keywords in local and organic results.

    Implements the ``RankingAnalyzer`` protocol.  Never raises: a missing API
    key or an unexpected error yields an :class:`AnalysisFailure`; individual
    keyword failures are counted in ``failed_analyses``.

    Usage::

        analyzer = SearchRankingAnalyzer(SerpApiClient())
        result = await analyzer.analyze("Joe's Pizza", "1 Main St, Austin, TX 78701",
                                        ["pizza austin"], "restaurant")
    """

    def __init__(self, client: Optional[SerpApiClient] = None, max_concurrency: int = 3):
        self._client = client or SerpApiClient()
        self._max_concurrency = max_concurrency

    async def analyze(
        self,
        name: str,
        address: str,
        keywords: Sequence[str],
        industry: Optional[str],
    ) -> SerpResult:
        start_ts = time.monotonic()
        logger.info("Starting SERP analysis for %s (%d keywords)", name, len(keywords))

        if not self._client.is_configured:
            logger.warning("SerpAPI key is not configured; skipping rankings")
            return AnalysisFailure(source="serp", error="SerpAPI key is not configured")

        try:
            terms = list(keywords) or generate_default_keywords(name, address, industry)
            location = to_supported_location(address)
            results, failed = await self._analyze_keywords(terms, address, location, name)

            summary = summarize_rankings(results, len(terms), failed)
            analysis = SerpAnalysis(
                business_name=name,
                location=address,
                keywords_analyzed=tuple(terms),
                industry=industry,
                keyword_results=tuple(results),
                rankings_summary=summary,
                competitors=tuple(aggregate_competitors(results)),
                local_seo_metrics=local_seo_metrics(summary),
                analysis_duration_ms=int((time.monotonic() - start_ts) * 1000),
            )
        except Exception as exc:
            logger.error("SERP analysis failed for %s: %s", name, exc, exc_info=True)
            return AnalysisFailure(source="serp", error=str(exc))

        logger.info(
            "SERP analysis complete: %d/%d keywords, %d map pack appearances, %d competitors",
            summary.successful_analyses, summary.total_keywords,
            summary.map_pack_appearances, len(analysis.competitors),
        )
        return analysis

    async def _analyze_keywords(self, keywords: list[str], address: str,
                                location: str, name: str) -> tuple[list[KeywordRanking], int]:
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _bounded(keyword: str) -> KeywordRanking:
            async with semaphore:
                return await self.analyze_keyword(keyword, address, location, name)

        outcomes = await asyncio.gather(
            *(_bounded(k) for k in keywords), return_exceptions=True
        )
        results: list[KeywordRanking] = []
        failed = 0
        for keyword, res in zip(keywords, outcomes):
            if isinstance(res, Exception):
                logger.error("Keyword analysis failed for %r: %s", keyword, res)
                failed += 1
            else:
                results.append(res)
        return results, failed

    async def analyze_keyword(self, keyword: str, address: str,
                              location: str, name: str) -> KeywordRanking:
        """Query one keyword and locate the business in both result sets."""
        data = await self._client.search(keyword, location=location)
        organic = data.get("organic_results") or []
        local = data.get("local_results") or []
        if isinstance(local, dict):
            local = local.get("places") or []

        organic_position = find_business_position(organic, name)
        local_position = find_business_position(local, name)
        local_comps, organic_comps = extract_competitors(organic, local, name)

        return KeywordRanking(
            keyword=keyword,
            location=address,
            organic_position=organic_position,
            local_position=local_position,
            in_map_pack=local_position is not None,
            in_top_3_map_pack=local_position is not None and local_position <= 3,
            in_top_10_organic=organic_position is not None and organic_position <= 10,
            competitors_in_map_pack=tuple(local_comps[:MAP_PACK_COMPETITORS_KEPT]),
            competitors_in_organic=tuple(organic_comps[:ORGANIC_COMPETITORS_KEPT]),
            total_organic_results=len(organic),
            total_local_results=len(local),
            search_volume_estimate=estimate_search_volume(keyword),
        )
