"""Business analysis orchestrator.

Resolves a business, fans out to the website, ranking and review
collaborators concurrently, then scores the combined context and builds the
final report.  Only profile resolution is fatal; every other collaborator
failure degrades that input to "no data".
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, Optional, TypeVar

from business_analysis.errors import (
    AnalysisFailedError,
    BusinessNotFoundError,
    ProfileNotFoundError,
)
from business_analysis.modules.analysis.entities import (
    AnalysisContext,
    AnalysisFailure,
    AnalysisRequest,
    BusinessContext,
    BusinessProfile,
    InferredDetails,
)
from business_analysis.modules.analysis.protocols import (
    DetailsInferrer,
    ProfileEnricher,
    ProfileResolver,
    RankingAnalyzer,
    ReviewAnalyzer,
    WebsiteAuditor,
)
from business_analysis.modules.analysis.recommendations import RecommendationEngine
from business_analysis.modules.analysis.report import (
    AnalysisMetadata,
    AnalysisReport,
    ReportAssembler,
)
from business_analysis.modules.analysis.scoring import ScoringEngine
from business_analysis.utils.helpers import utc_now_iso

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class TaskOutcome(Generic[T]):
    """Settled result of one named concurrent branch."""

    name: str
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or_none(self) -> Optional[T]:
        return self.value if self.error is None else None


async def settle_all(tasks: dict[str, Awaitable[Any]]) -> dict[str, TaskOutcome]:
    """Run named awaitables concurrently and capture each outcome.

    A failing branch never cancels the others.  Exceptions, including a
    branch that was cancelled on its own, are logged and recorded on the
    branch's :class:`TaskOutcome`.  Cancellation of the calling task
    propagates.
    """
    names = list(tasks)
    running = [asyncio.create_task(coro) for coro in tasks.values()]
    results = await asyncio.gather(*running, return_exceptions=True)

    outcomes: dict[str, TaskOutcome] = {}
    for name, res in zip(names, results):
        if isinstance(res, asyncio.CancelledError):
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise res
            logger.error("Analysis '%s' was cancelled", name)
            outcomes[name] = TaskOutcome(name=name, error=res)
            continue
        if isinstance(res, BaseException):
            logger.error("Analysis '%s' failed: %s", name, res, exc_info=res)
            outcomes[name] = TaskOutcome(name=name, error=res)
        else:
            outcomes[name] = TaskOutcome(name=name, value=res)
    return outcomes


class BusinessAnalyzer:
    """Run a full business analysis against injected collaborators.

    Usage::

        analyzer = BusinessAnalyzer(
            resolver=places_client,
            website_auditor=WebsiteAuditor(),
            ranking_analyzer=SearchRankingAnalyzer(serp_client),
            review_analyzer=ReviewSentimentAnalyzer(llm),
        )
        report = await analyzer.analyze(AnalysisRequest(place_id="ChIJ..."))
        print(report.to_dict()["summary_score"])
    """

    def __init__(
        self,
        resolver: ProfileResolver,
        website_auditor: WebsiteAuditor,
        ranking_analyzer: RankingAnalyzer,
        review_analyzer: ReviewAnalyzer,
        inferrer: Optional[DetailsInferrer] = None,
        enricher: Optional[ProfileEnricher] = None,
        scoring_engine: Optional[ScoringEngine] = None,
        recommendation_engine: Optional[RecommendationEngine] = None,
        assembler: Optional[ReportAssembler] = None,
    ):
        self._resolver = resolver
        self._website_auditor = website_auditor
        self._ranking_analyzer = ranking_analyzer
        self._review_analyzer = review_analyzer
        self._inferrer = inferrer
        self._enricher = enricher
        self._scoring = scoring_engine or ScoringEngine()
        self._recommendations = recommendation_engine or RecommendationEngine()
        self._assembler = assembler or ReportAssembler()

    # ------------------------------------------------------------------
    # 1. Main entry point
    # ------------------------------------------------------------------

    async def analyze(self, request: AnalysisRequest) -> AnalysisReport:
        """Analyze one business end to end.

        Raises:
            BusinessNotFoundError: If the profile cannot be resolved.
            AnalysisFailedError: On any other unexpected failure.
        """
        start_ts = time.monotonic()
        logger.info(
            "Starting business analysis: name=%r location=%r place_id=%r",
            request.business_name, request.location, request.place_id,
        )
        try:
            profile = await self._resolve(request)
            return await self._analyze_profile(profile, request, start_ts)
        except BusinessNotFoundError:
            raise
        except Exception as exc:
            logger.error("Business analysis failed: %s", exc, exc_info=True)
            raise AnalysisFailedError(str(exc)) from exc

    async def _analyze_profile(
        self,
        profile: BusinessProfile,
        request: AnalysisRequest,
        start_ts: float,
    ) -> AnalysisReport:
        industry, keywords, ai_inferred = await self._complete_details(profile, request)

        outcomes = await settle_all(self._build_tasks(profile, industry, keywords))
        context = AnalysisContext(
            profile=profile,
            website=outcomes["website"].value_or_none() if "website" in outcomes else None,
            serp=outcomes["serp"].value_or_none(),
            reviews=outcomes["reviews"].value_or_none(),
            industry=industry,
            keywords=keywords,
        )
        for name, result in (("website", context.website), ("serp", context.serp),
                             ("reviews", context.reviews)):
            if isinstance(result, AnalysisFailure):
                logger.warning("%s analysis unavailable: %s", name, result.error)

        scoring = self._scoring.score(context)
        recommendations = self._recommendations.recommend(context, scoring)

        duration_ms = int((time.monotonic() - start_ts) * 1000)
        metadata = AnalysisMetadata(
            analyzed_at=utc_now_iso(),
            analysis_duration_ms=duration_ms,
            keywords_analyzed=keywords,
            industry=industry,
            ai_inferred=ai_inferred,
        )
        report = self._assembler.assemble(context, scoring, recommendations, metadata)
        logger.info(
            "Business analysis complete for %s in %dms (summary=%d)",
            profile.name, duration_ms, scoring.summary_score,
        )
        return report

    # ------------------------------------------------------------------
    # 2. Resolution and inference
    # ------------------------------------------------------------------

    async def _resolve(self, request: AnalysisRequest) -> BusinessProfile:
        try:
            if request.place_id:
                profile = await self._resolver.resolve_by_place_id(request.place_id)
            else:
                resolved = await self._resolver.search(
                    request.business_name or "", request.location or ""
                )
                profile = resolved.profile if resolved else None
        except ProfileNotFoundError as exc:
            logger.warning("Business profile not found: %s", exc)
            raise BusinessNotFoundError() from exc

        if profile is None:
            raise BusinessNotFoundError()
        profile = await self._enrich(profile)
        logger.info(
            "Business profile resolved: %s (place_id=%s, website=%s)",
            profile.name, profile.place_id, profile.website,
        )
        return profile

    async def _enrich(self, profile: BusinessProfile) -> BusinessProfile:
        """Fill gaps in the resolved profile; failures keep it unchanged."""
        if self._enricher is None:
            return profile
        try:
            enrichment = await self._enricher.enrich(profile.name, profile.formatted_address)
        except Exception as exc:
            logger.warning("Profile enrichment failed for %s: %s", profile.name, exc)
            return profile
        if enrichment is None or enrichment.is_empty:
            return profile
        return enrichment.fill(profile)

    async def _complete_details(
        self,
        profile: BusinessProfile,
        request: AnalysisRequest,
    ) -> tuple[Optional[str], tuple[str, ...], bool]:
        industry = request.industry
        keywords = tuple(request.keywords)
        if industry and keywords:
            return industry, keywords, False
        if self._inferrer is None:
            # The ranking analyzer generates its own default keywords.
            return industry, keywords, True

        location = request.location or profile.formatted_address
        try:
            inferred = await self._inferrer.infer(profile.name, location)
        except Exception as exc:
            logger.warning("Detail inference failed, using defaults: %s", exc)
            inferred = InferredDetails.fallback(profile.name)

        logger.info(
            "Inferred business details: industry=%r keywords=%s",
            inferred.industry, list(inferred.keywords),
        )
        return industry or inferred.industry, keywords or tuple(inferred.keywords), True

    # ------------------------------------------------------------------
    # 3. Concurrent fan-out
    # ------------------------------------------------------------------

    def _build_tasks(
        self,
        profile: BusinessProfile,
        industry: Optional[str],
        keywords: tuple[str, ...],
    ) -> dict[str, Awaitable[Any]]:
        tasks: dict[str, Awaitable[Any]] = {}
        if profile.has_website:
            tasks["website"] = self._website_auditor.analyze(
                profile.website,
                BusinessContext(
                    business_name=profile.name,
                    location=profile.formatted_address,
                    industry=industry,
                ),
            )
        else:
            logger.info("No website on profile for %s; skipping website audit", profile.name)
        tasks["serp"] = self._ranking_analyzer.analyze(
            profile.name, profile.formatted_address, list(keywords), industry
        )
        tasks["reviews"] = self._review_analyzer.analyze(list(profile.reviews), profile.place_id)
        return tasks
