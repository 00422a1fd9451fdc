"""Collaborator interfaces consumed by :class:`BusinessAnalyzer`.

Concrete implementations live in the sibling ``website_audit``,
``rank_tracker``, ``reviews`` and ``business_intel`` packages and in
``business_analysis.integrations.google_places``; tests inject mocks.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, runtime_checkable

from business_analysis.modules.analysis.entities import (
    BusinessContext,
    BusinessProfile,
    InferredDetails,
    ProfileEnrichment,
    ResolvedProfile,
    Review,
    ReviewResult,
    SerpResult,
    WebsiteResult,
)


@runtime_checkable
class ProfileResolver(Protocol):
    """Resolves identifying input to one canonical profile.

    Both methods raise :class:`~business_analysis.errors.ProfileNotFoundError`
    when nothing matches.
    """

    async def resolve_by_place_id(self, place_id: str) -> BusinessProfile: ...

    async def search(self, name: str, location: str) -> ResolvedProfile: ...


@runtime_checkable
class WebsiteAuditor(Protocol):
    async def analyze(self, url: str, context: BusinessContext) -> WebsiteResult: ...


@runtime_checkable
class RankingAnalyzer(Protocol):
    async def analyze(
        self,
        name: str,
        address: str,
        keywords: Sequence[str],
        industry: Optional[str],
    ) -> SerpResult: ...


@runtime_checkable
class ReviewAnalyzer(Protocol):
    async def analyze(self, reviews: Sequence[Review], place_id: str) -> ReviewResult: ...


@runtime_checkable
class ProfileEnricher(Protocol):
    """Looks up extra profile facts; returns None instead of raising."""

    async def enrich(self, name: str, address: str) -> Optional[ProfileEnrichment]: ...


@runtime_checkable
class DetailsInferrer(Protocol):
    """Infers industry and keywords; never raises."""

    async def infer(self, name: str, location: str) -> InferredDetails: ...
