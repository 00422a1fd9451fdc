"""Turn scoring issues and raw analysis data into prioritized recommendations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from business_analysis.modules.analysis.entities import (
    AnalysisContext,
    InsightType,
    to_jsonable,
)
from business_analysis.modules.analysis.issue_codes import Issue, Severity
from business_analysis.modules.analysis.scoring import ScoringOutput
from business_analysis.modules.analysis.templates import (
    CONCERN_ACTIONS,
    CONTENT_TEMPLATE,
    GENERIC_TITLES,
    LOCAL_RANKINGS_TEMPLATE,
    PERFORMANCE_TEMPLATE,
    RECOMMENDATION_TEMPLATES,
    RecommendationTemplate,
)
from business_analysis.utils.helpers import extract_city_from_address

logger = logging.getLogger(__name__)

MAX_RECOMMENDATIONS = 15

_PRIORITY_RANK = {"critical": 1, "high": 2, "medium": 3, "low": 4}
_IMPACT_RANK = {"high": 1, "medium": 2, "low": 3}
_UNKNOWN_RANK = 99


@dataclass(frozen=True)
class Recommendation:
    type: str
    category: str
    priority: str
    title: str
    description: str
    impact: str
    effort: str
    timeframe: str
    specific_actions: tuple[str, ...] = ()

    @property
    def dedup_key(self) -> tuple[str, str, str]:
        return (self.type, self.category, self.title)

    @property
    def sort_key(self) -> tuple[int, int]:
        return (
            _PRIORITY_RANK.get(self.priority, _UNKNOWN_RANK),
            _IMPACT_RANK.get(self.impact, _UNKNOWN_RANK),
        )

    @classmethod
    def from_template(cls, template: RecommendationTemplate,
                      fields: Optional[dict[str, str]] = None) -> "Recommendation":
        actions = template.specific_actions
        if fields:
            actions = tuple(action.format(**fields) for action in actions)
        return cls(
            type=to_jsonable(template.type),
            category=template.category,
            priority=template.priority,
            title=template.title,
            description=template.description,
            impact=template.impact,
            effort=template.effort,
            timeframe=template.timeframe,
            specific_actions=actions,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "category": self.category,
            "priority": self.priority,
            "title": self.title,
            "description": self.description,
            "impact": self.impact,
            "effort": self.effort,
            "timeframe": self.timeframe,
            "specific_actions": list(self.specific_actions),
        }


def deduplicate(recommendations: Iterable[Recommendation]) -> list[Recommendation]:
    """Drop later recommendations sharing a (type, category, title) key."""
    seen: set[tuple[str, str, str]] = set()
    unique: list[Recommendation] = []
    for rec in recommendations:
        if rec.dedup_key in seen:
            continue
        seen.add(rec.dedup_key)
        unique.append(rec)
    return unique


def prioritize(recommendations: Iterable[Recommendation],
               limit: int = MAX_RECOMMENDATIONS) -> list[Recommendation]:
    """Dedupe, stable-sort by (priority, impact) and cap at *limit*."""
    ordered = sorted(deduplicate(recommendations), key=lambda r: r.sort_key)
    return ordered[:limit]


class RecommendationEngine:
    """Derive actionable recommendations from a scored analysis.

    Usage::

        engine = RecommendationEngine()
        recs = engine.recommend(context, scoring_output)
    """

    def recommend(self, context: AnalysisContext,
                  scoring: ScoringOutput) -> list[Recommendation]:
        fields = self._template_fields(context)

        candidates: list[Recommendation] = []
        for issues in (scoring.seo.issues, scoring.ux.issues, scoring.local_listing.issues):
            for issue in issues:
                rec = self.for_issue(issue, fields)
                if rec is not None:
                    candidates.append(rec)

        candidates.extend(self.from_analysis_data(context))

        result = prioritize(candidates)
        logger.debug(
            "Built %d recommendations (%d candidates) for %s",
            len(result), len(candidates), context.profile.name,
        )
        return result

    # ------------------------------------------------------------------
    # Issue-driven
    # ------------------------------------------------------------------

    @staticmethod
    def for_issue(issue: Issue, fields: dict[str, str]) -> Optional[Recommendation]:
        """Map one issue to its template, or to the category generic."""
        template = RECOMMENDATION_TEMPLATES.get(issue.code)
        if template is not None and template.type == issue.category:
            return Recommendation.from_template(template, fields)

        if issue.severity not in (Severity.CRITICAL, Severity.HIGH):
            return None
        return Recommendation(
            type=issue.category.value,
            category="general",
            priority=issue.severity.value,
            title=GENERIC_TITLES[issue.category],
            description=issue.message,
            impact="high" if issue.severity == Severity.CRITICAL else "medium",
            effort="medium",
            timeframe="1-2 weeks",
        )

    @staticmethod
    def _template_fields(context: AnalysisContext) -> dict[str, str]:
        profile = context.profile
        return {
            "name": profile.name,
            "industry": context.industry or "Services",
            "city": extract_city_from_address(profile.formatted_address),
        }

    # ------------------------------------------------------------------
    # Data-driven
    # ------------------------------------------------------------------

    def from_analysis_data(self, context: AnalysisContext) -> list[Recommendation]:
        recs: list[Recommendation] = []

        site = context.usable_website
        if site is not None:
            perf = site.performance_metrics.lighthouse_performance
            if perf is not None and perf < 70:
                recs.append(Recommendation.from_template(PERFORMANCE_TEMPLATE))
            words = site.page_content.word_count
            if words is not None and words < 300:
                recs.append(Recommendation.from_template(CONTENT_TEMPLATE))

        serp = context.usable_serp
        if serp is not None and serp.rankings_summary.map_pack_appearances == 0:
            recs.append(Recommendation.from_template(LOCAL_RANKINGS_TEMPLATE))

        reviews = context.usable_reviews
        if reviews is not None:
            for insight in reviews.insights:
                if insight.type != InsightType.CONCERN:
                    continue
                recs.append(Recommendation(
                    type="reviews",
                    category="reputation",
                    priority="high" if insight.impact == "high" else "medium",
                    title=f"Address Customer Concern: {insight.title}",
                    description=insight.description,
                    impact=insight.impact,
                    effort="medium",
                    timeframe="2-4 weeks",
                    specific_actions=CONCERN_ACTIONS,
                ))
        return recs
