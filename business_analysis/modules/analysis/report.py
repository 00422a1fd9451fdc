"""Final report shape and its assembly from scores, analyses and recommendations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from business_analysis.modules.analysis.checklist import evaluate_profile_checklist
from business_analysis.modules.analysis.entities import (
    AnalysisContext,
    BusinessProfile,
    CompetitorSummary,
    ReviewResult,
    SerpAnalysis,
    SerpResult,
    WebsiteResult,
)
from business_analysis.modules.analysis.issue_codes import Severity
from business_analysis.modules.analysis.recommendations import Recommendation
from business_analysis.modules.analysis.scoring import (
    ScoringOutput,
    score_category,
    score_color,
)
from business_analysis.utils.helpers import round_half_up, round_to

PhotoUrlBuilder = Callable[[str, int], Optional[str]]

HEALTHY_CATEGORY_SCORE = 80
MAX_COMPETITORS_SHOWN = 6
PHOTOS_SHOWN = 5
_UNRANKED = 999

# Unranked businesses are compared as if sitting at position 10.
_UNRANKED_PEER_POSITION = 10
COMPETITOR_ADVANTAGES_SHOWN = 3

INDUSTRY_BENCHMARKS = {
    "restaurant": {"average_rating": 4.2, "average_reviews": 150, "top_quartile_rating": 4.5},
}
DEFAULT_BENCHMARK = {"average_rating": 4.1, "average_reviews": 120, "top_quartile_rating": 4.4}


@dataclass(frozen=True)
class AnalysisMetadata:
    analyzed_at: str
    analysis_duration_ms: int
    keywords_analyzed: tuple[str, ...] = ()
    industry: Optional[str] = None
    ai_inferred: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "analyzed_at": self.analyzed_at,
            "analysis_duration_ms": self.analysis_duration_ms,
            "keywords_analyzed": list(self.keywords_analyzed),
            "industry": self.industry,
            "ai_inferred": self.ai_inferred,
        }


@dataclass(frozen=True)
class AnalysisReport:
    """Everything produced by one analysis run.

    ``to_dict()`` is the JSON payload handed back to callers.  Collaborator
    results are kept as returned; failures serialize as their error dict and
    skipped analyses as ``None``.
    """

    scoring: ScoringOutput
    profile: BusinessProfile
    website_analysis: Optional[WebsiteResult]
    serp_analysis: Optional[SerpResult]
    review_analysis: Optional[ReviewResult]
    recommendations: tuple[Recommendation, ...]
    metadata: AnalysisMetadata
    google_business_profile: dict[str, Any] = field(default_factory=dict)
    local_listings_analysis: dict[str, Any] = field(default_factory=dict)
    keyword_performance: Optional[dict[str, Any]] = None
    competitors_ranking: Optional[dict[str, Any]] = None
    competitive_intelligence: dict[str, Any] = field(default_factory=dict)

    @property
    def summary_score(self) -> int:
        return self.scoring.summary_score

    def summary_metrics(self) -> dict[str, Any]:
        issues = self.scoring.all_issues
        category_scores = (
            self.scoring.seo.score,
            self.scoring.ux.score,
            self.scoring.local_listing.score,
        )
        summary = self.summary_score
        if summary >= 80:
            health = "Excellent"
        elif summary >= 60:
            health = "Good"
        elif summary >= 40:
            health = "Fair"
        else:
            health = "Poor"
        return {
            "total_issues_found": len(issues),
            "critical_issues": sum(1 for i in issues if i.severity == Severity.CRITICAL),
            "total_categories_reviewed": len(category_scores),
            "categories_needing_work": sum(
                1 for s in category_scores if s < HEALTHY_CATEGORY_SCORE
            ),
            "overall_health": health,
        }

    def score_categories(self) -> dict[str, dict[str, str]]:
        scores = {
            "summary": self.summary_score,
            "seo": self.scoring.seo.score,
            "ux": self.scoring.ux.score,
            "local_listing": self.scoring.local_listing.score,
        }
        return {
            name: {"label": score_category(value), "color": score_color(value)}
            for name, value in scores.items()
        }

    def to_dict(self) -> dict[str, Any]:
        scoring = self.scoring
        return {
            "summary_score": scoring.summary_score,
            "seo_score": scoring.seo.score,
            "ux_score": scoring.ux.score,
            "local_listing_score": scoring.local_listing.score,
            "score_breakdowns": {
                "seo": dict(scoring.seo.breakdown),
                "ux": dict(scoring.ux.breakdown),
                "local_listing": dict(scoring.local_listing.breakdown),
            },
            "score_categories": self.score_categories(),
            "summary_metrics": self.summary_metrics(),
            "google_business_profile": self.google_business_profile,
            "local_listings_analysis": self.local_listings_analysis,
            "website_analysis": _maybe_dict(self.website_analysis),
            "local_seo_analysis": _maybe_dict(self.serp_analysis),
            "keyword_performance": self.keyword_performance,
            "competitors_ranking": self.competitors_ranking,
            "competitive_intelligence": self.competitive_intelligence,
            "review_sentiment": _maybe_dict(self.review_analysis),
            "seo_issues": [i.to_dict() for i in scoring.seo.issues],
            "ux_issues": [i.to_dict() for i in scoring.ux.issues],
            "local_listing_issues": [i.to_dict() for i in scoring.local_listing.issues],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "analysis_metadata": self.metadata.to_dict(),
        }


def _maybe_dict(value: Any) -> Optional[dict[str, Any]]:
    return value.to_dict() if value is not None else None


class ReportAssembler:
    """Merge profile, analyses, scores and recommendations into a report.

    Args:
        photo_url: Optional callable ``(photo_reference, max_width) -> url``
            used to attach viewable URLs to profile photos.
    """

    def __init__(self, photo_url: Optional[PhotoUrlBuilder] = None):
        self._photo_url = photo_url

    def assemble(
        self,
        context: AnalysisContext,
        scoring: ScoringOutput,
        recommendations: list[Recommendation],
        metadata: AnalysisMetadata,
    ) -> AnalysisReport:
        serp = context.usable_serp
        return AnalysisReport(
            scoring=scoring,
            profile=context.profile,
            website_analysis=context.website,
            serp_analysis=context.serp,
            review_analysis=context.reviews,
            recommendations=tuple(recommendations),
            metadata=metadata,
            google_business_profile=self.business_profile_section(context.profile),
            local_listings_analysis=evaluate_profile_checklist(
                context.profile, context.keywords
            ),
            keyword_performance=keyword_performance(serp) if serp else None,
            competitors_ranking=competitors_ranking(context.profile, serp) if serp else None,
            competitive_intelligence=competitive_intelligence(
                context.profile, serp, context.industry, scoring.summary_score
            ),
        )

    def business_profile_section(self, profile: BusinessProfile) -> dict[str, Any]:
        photos = []
        for photo in profile.photos[:PHOTOS_SHOWN]:
            entry = photo.to_dict()
            if self._photo_url is not None:
                entry["photo_url"] = self._photo_url(photo.photo_reference, 800)
                entry["thumbnail_url"] = self._photo_url(photo.photo_reference, 400)
            photos.append(entry)
        return {
            "place_id": profile.place_id,
            "name": profile.name,
            "address": profile.formatted_address,
            "phone": profile.phone,
            "website": profile.website,
            "rating": profile.rating,
            "review_count": profile.review_count,
            "categories": list(profile.types),
            "opening_hours": profile.opening_hours,
            "photos": photos,
            "price_level": profile.price_level,
            "business_status": profile.business_status.value,
        }


# ------------------------------------------------------------------
# SERP-derived sections
# ------------------------------------------------------------------

def keyword_performance(serp: SerpAnalysis) -> dict[str, Any]:
    """Per-keyword map-pack and organic standing with the top competitor."""
    results = serp.keyword_results
    detailed = []
    for result in results:
        top = result.competitors_in_map_pack[0] if result.competitors_in_map_pack else None
        detailed.append({
            "keyword": result.keyword,
            "location": result.location,
            "your_business": {
                "map_pack_position": result.local_position,
                "organic_position": result.organic_position,
                "map_pack_status": (
                    f"#{result.local_position} map pack"
                    if result.in_map_pack else "Unranked map pack"
                ),
                "organic_status": (
                    f"#{result.organic_position} organic"
                    if result.organic_position else "Unranked organic"
                ),
                "in_top_3_map_pack": result.in_top_3_map_pack,
                "in_top_10_organic": result.in_top_10_organic,
            },
            "top_competitor": {
                "name": top.name,
                "position": top.position,
                "rating": top.rating,
                "review_count": top.reviews,
            } if top else None,
            "search_volume_estimate": result.search_volume_estimate,
        })

    summary = serp.rankings_summary
    return {
        "summary": {
            "total_keywords_analyzed": len(results),
            "ranking_in_map_pack": sum(1 for r in results if r.in_map_pack),
            "ranking_in_organic": sum(1 for r in results if r.organic_position is not None),
            "average_map_pack_position": summary.average_map_pack_position,
            "average_organic_position": summary.average_organic_position,
        },
        "detailed_results": detailed,
    }


def competitors_ranking(profile: BusinessProfile, serp: SerpAnalysis) -> dict[str, Any]:
    """Up to six competitors, local first, flagged when they outrank you."""
    summary = serp.rankings_summary
    local = [c for c in serp.competitors if c.type == "local"]
    organic = [c for c in serp.competitors if c.type == "organic"]
    chosen = local if len(local) >= MAX_COMPETITORS_SHOWN else local + organic

    your_map = summary.average_map_pack_position or _UNRANKED
    your_organic = summary.average_organic_position or _UNRANKED

    competitors = []
    for rank, competitor in enumerate(chosen[:MAX_COMPETITORS_SHOWN], start=1):
        yours = your_map if competitor.type == "local" else your_organic
        competitors.append({
            "name": competitor.name,
            "rating": competitor.rating,
            "review_count": competitor.reviews,
            "position": competitor.average_position,
            "rank": rank,
            "type": competitor.type,
            "beating_you": competitor.average_position < yours,
        })

    return {
        "your_business": {
            "name": profile.name,
            "rating": profile.rating,
            "review_count": profile.review_count,
            "position": summary.average_map_pack_position,
        },
        "competitors": competitors,
        "total_competitors_found": len(serp.competitors),
        "local_competitors_found": len(local),
        "organic_competitors_found": len(organic),
    }


# ------------------------------------------------------------------
# Competitive intelligence
# ------------------------------------------------------------------

def _competitor_advantages(
    profile: BusinessProfile,
    local: list[CompetitorSummary],
    your_position: float,
) -> list[dict[str, Any]]:
    rating = profile.rating or 0
    advantages = []
    for competitor in local[:COMPETITOR_ADVANTAGES_SHOWN]:
        ahead_by = your_position - competitor.average_position
        advantages.append({
            "name": competitor.name,
            "rating_advantage": (
                f"{competitor.rating - rating:.1f} stars higher"
                if competitor.rating is not None and competitor.rating > rating else None
            ),
            "review_count_advantage": (
                f"{competitor.reviews - profile.review_count} more reviews"
                if competitor.reviews is not None and competitor.reviews > profile.review_count
                else None
            ),
            "ranking_advantage": (
                f"Ranks {round_half_up(ahead_by)} positions higher" if ahead_by > 0 else None
            ),
        })
    return advantages


def _industry_benchmarks(
    profile: BusinessProfile,
    local: list[CompetitorSummary],
    industry: Optional[str],
) -> dict[str, Any]:
    bench = INDUSTRY_BENCHMARKS.get((industry or "").lower(), DEFAULT_BENCHMARK)
    rating = profile.rating
    if rating is None:
        rating_vs = "No rating"
    else:
        rating_vs = "Above average" if rating >= bench["average_rating"] else "Below average"
    if not profile.review_count:
        reviews_vs = "No reviews"
    elif profile.review_count >= bench["average_reviews"]:
        reviews_vs = "Above average"
    else:
        reviews_vs = "Below average"
    return {
        "average_rating_in_industry": bench["average_rating"],
        "your_rating_vs_industry": rating_vs,
        "average_reviews_in_industry": bench["average_reviews"],
        "your_reviews_vs_industry": reviews_vs,
        "top_25_percent_rating": bench["top_quartile_rating"],
        "gap_to_top_quartile": (
            round_to(max(0.0, bench["top_quartile_rating"] - rating), 1) if rating else 0
        ),
        "businesses_outperforming_you": sum(
            1 for c in local if c.rating is not None and c.rating > (rating or 0)
        ),
    }


def _urgent_issues(
    profile: BusinessProfile,
    serp: Optional[SerpAnalysis],
    summary_score: int,
) -> list[dict[str, str]]:
    issues = []
    if profile.rating is not None and profile.rating < 4.0:
        issues.append({
            "severity": "critical",
            "issue": "Low rating",
            "impact": "Ratings under 4.0 push searchers toward competitors",
            "urgency": "Respond to negative reviews and ask happy customers for reviews",
        })
    if profile.review_count < 50:
        issues.append({
            "severity": "high",
            "issue": "Insufficient social proof",
            "impact": "Customers choose competitors with more reviews",
            "urgency": "Collect 20+ new reviews this month",
        })
    appearances = serp.rankings_summary.map_pack_appearances if serp else 0
    if appearances == 0:
        issues.append({
            "severity": "critical",
            "issue": "Invisible in local search",
            "impact": "The business does not appear in the map pack for any analyzed keyword",
            "urgency": "Competitors are capturing local search traffic",
        })
    if summary_score < 60:
        issues.append({
            "severity": "high",
            "issue": "Poor overall digital presence",
            "impact": "Better-optimized competitors win market share",
            "urgency": "Start with the critical recommendations",
        })
    return issues


def competitive_intelligence(
    profile: BusinessProfile,
    serp: Optional[SerpAnalysis],
    industry: Optional[str],
    summary_score: int,
) -> dict[str, Any]:
    """Standing against local competitors, industry benchmarks and urgent issues."""
    local = [c for c in serp.competitors if c.type == "local"] if serp else []
    your_position = (
        serp.rankings_summary.average_map_pack_position if serp else None
    ) or _UNRANKED_PEER_POSITION

    return {
        "market_position": {
            "market_leader": local[0].name if local else None,
            "your_ranking_among_peers": len(local) + 1 if serp else None,
            "total_competitors_in_market": len(local),
        },
        "competitor_advantages": _competitor_advantages(profile, local, your_position),
        "industry_benchmarks": _industry_benchmarks(profile, local, industry),
        "urgent_issues": _urgent_issues(profile, serp, summary_score),
    }
