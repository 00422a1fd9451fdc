"""Category scorers and the weighted summary score.

:class:`ScoringEngine` is pure: the same :class:`AnalysisContext` always
yields the same :class:`ScoringOutput`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from business_analysis.modules.analysis.entities import AnalysisContext
from business_analysis.modules.analysis.issue_codes import Issue, IssueCode
from business_analysis.modules.analysis.rules import (
    LOCAL_PROFILE_RULES,
    LOCAL_REVIEW_RULES,
    SEO_PROFILE_RULES,
    SEO_WEBSITE_RULES,
    UX_PROFILE_RULES,
    UX_WEBSITE_RULES,
    RuleOutcome,
    fold,
    serp_points,
)
from business_analysis.utils.helpers import round_half_up

logger = logging.getLogger(__name__)

# Category weights for the summary score
_WEIGHTS = {"seo": 0.4, "ux": 0.4, "local_listing": 0.2}

SEO_CAP_WITHOUT_WEBSITE = 40
UX_CAP_WITHOUT_WEBSITE = 30

_SCORE_BANDS = [
    (90, "Excellent", "green"),
    (80, "Good", "lightgreen"),
    (70, "Fair", "yellow"),
    (60, "Poor", "orange"),
]


def score_category(score: float) -> str:
    """Human label for a 0-100 score."""
    for threshold, label, _ in _SCORE_BANDS:
        if score >= threshold:
            return label
    return "Critical"


def score_color(score: float) -> str:
    """Display color for a 0-100 score."""
    for threshold, _, color in _SCORE_BANDS:
        if score >= threshold:
            return color
    return "red"


@dataclass(frozen=True)
class ScoreResult:
    score: int
    issues: tuple[Issue, ...] = ()
    breakdown: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "issues": [i.to_dict() for i in self.issues],
            "breakdown": dict(self.breakdown),
        }


@dataclass(frozen=True)
class ScoringOutput:
    seo: ScoreResult
    ux: ScoreResult
    local_listing: ScoreResult

    @property
    def summary_score(self) -> int:
        return round_half_up(
            self.seo.score * _WEIGHTS["seo"]
            + self.ux.score * _WEIGHTS["ux"]
            + self.local_listing.score * _WEIGHTS["local_listing"]
        )

    @property
    def all_issues(self) -> tuple[Issue, ...]:
        return self.seo.issues + self.ux.issues + self.local_listing.issues

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary_score": self.summary_score,
            "seo": self.seo.to_dict(),
            "ux": self.ux.to_dict(),
            "local_listing": self.local_listing.to_dict(),
        }


class ScoringEngine:
    """Compute SEO, UX and Local-Listing scores for one analysis context.

    Usage::

        output = ScoringEngine().score(context)
        print(output.summary_score, output.seo.breakdown)
    """

    def score(self, context: AnalysisContext) -> ScoringOutput:
        # The SERP sub-score is shared by the SEO and Local-Listing scorers.
        serp = serp_points(context.usable_serp)
        output = ScoringOutput(
            seo=self.score_seo(context, serp),
            ux=self.score_ux(context),
            local_listing=self.score_local_listing(context, serp),
        )
        logger.debug(
            "Scored %s: summary=%d seo=%d ux=%d local=%d",
            context.profile.name,
            output.summary_score,
            output.seo.score,
            output.ux.score,
            output.local_listing.score,
        )
        return output

    # ------------------------------------------------------------------
    # SEO
    # ------------------------------------------------------------------

    def score_seo(self, context: AnalysisContext, serp: int) -> ScoreResult:
        profile = fold(SEO_PROFILE_RULES, context.profile)

        if not context.has_website:
            issues = profile.issues + RuleOutcome.flag(IssueCode.SEO_NO_WEBSITE).issues
            return ScoreResult(
                score=min(SEO_CAP_WITHOUT_WEBSITE, round_half_up(profile.points + serp)),
                issues=issues,
                breakdown={
                    "business_profile": round_half_up(profile.points),
                    "website_analysis": 0,
                    "serp_analysis": serp,
                },
            )

        site = context.usable_website
        if site is not None:
            website = fold(SEO_WEBSITE_RULES, site)
        else:
            website = RuleOutcome.flag(IssueCode.SEO_WEBSITE_ANALYSIS_FAILED)

        return ScoreResult(
            score=round_half_up(profile.points + website.points + serp),
            issues=profile.issues + website.issues,
            breakdown={
                "business_profile": round_half_up(profile.points),
                "website_analysis": round_half_up(website.points),
                "serp_analysis": serp,
            },
        )

    # ------------------------------------------------------------------
    # UX
    # ------------------------------------------------------------------

    def score_ux(self, context: AnalysisContext) -> ScoreResult:
        profile = fold(UX_PROFILE_RULES, context.profile)

        if not context.has_website:
            return ScoreResult(
                score=min(UX_CAP_WITHOUT_WEBSITE, round_half_up(profile.points)),
                issues=profile.issues + RuleOutcome.flag(IssueCode.UX_NO_WEBSITE).issues,
                breakdown={
                    "business_profile": round_half_up(profile.points),
                    "website_analysis": 0,
                },
            )

        site = context.usable_website
        if site is not None:
            website = fold(UX_WEBSITE_RULES, site)
        else:
            website = RuleOutcome.flag(IssueCode.UX_WEBSITE_ANALYSIS_FAILED)

        return ScoreResult(
            score=round_half_up(profile.points + website.points),
            issues=profile.issues + website.issues,
            breakdown={
                "business_profile": round_half_up(profile.points),
                "website_analysis": round_half_up(website.points),
            },
        )

    # ------------------------------------------------------------------
    # Local listing
    # ------------------------------------------------------------------

    def score_local_listing(self, context: AnalysisContext, serp: int) -> ScoreResult:
        profile = fold(LOCAL_PROFILE_RULES, context.profile)

        reviews = context.usable_reviews
        if reviews is not None:
            review = fold(LOCAL_REVIEW_RULES, reviews)
        else:
            review = RuleOutcome.flag(IssueCode.REVIEW_ANALYSIS_UNAVAILABLE)

        return ScoreResult(
            score=round_half_up(profile.points + serp + review.points),
            issues=profile.issues + review.issues,
            breakdown={
                "business_profile": round_half_up(profile.points),
                "serp_analysis": serp,
                "review_analysis": round_half_up(review.points),
            },
        )
