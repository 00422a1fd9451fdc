"""Scoring rules.

A rule is a callable taking one subject (a profile, a website analysis, a
review analysis or a SERP analysis) and returning an immutable
:class:`RuleOutcome`.  Category scorers fold ordered rule lists and sum the
outcomes; no rule mutates shared state, so each is testable on its own.
"""

from __future__ import annotations

import functools
import operator
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Sequence

from business_analysis.modules.analysis.entities import (
    BusinessStatus,
    ReviewAnalysis,
    SerpAnalysis,
    WebsiteAnalysis,
)
from business_analysis.modules.analysis.issue_codes import Issue, IssueCode
from business_analysis.utils.helpers import round_half_up


@dataclass(frozen=True)
class RuleOutcome:
    """Points earned and issues raised by one rule."""

    points: float = 0
    issues: tuple[Issue, ...] = ()

    def __add__(self, other: "RuleOutcome") -> "RuleOutcome":
        return RuleOutcome(self.points + other.points, self.issues + other.issues)

    @classmethod
    def award(cls, points: float) -> "RuleOutcome":
        return cls(points=points)

    @classmethod
    def flag(cls, code: IssueCode, **fmt: Any) -> "RuleOutcome":
        return cls(issues=(Issue.of(code, **fmt),))


NOTHING = RuleOutcome()

Rule = Callable[[Any], RuleOutcome]


def fold(rules: Iterable[Rule], subject: Any) -> RuleOutcome:
    """Apply *rules* in order to *subject* and sum their outcomes."""
    return functools.reduce(operator.add, (rule(subject) for rule in rules), NOTHING)


# ------------------------------------------------------------------
# Rule builders
# ------------------------------------------------------------------

def requires(getter: Callable[[Any], Any], points: float,
             code: Optional[IssueCode] = None) -> Rule:
    """Award *points* when ``getter(subject)`` is truthy, else flag *code*."""

    def rule(subject: Any) -> RuleOutcome:
        if getter(subject):
            return RuleOutcome.award(points)
        return RuleOutcome.flag(code) if code else NOTHING

    return rule


def tiered(getter: Callable[[Any], Optional[float]],
           tiers: Sequence[tuple[float, float]],
           code: Optional[IssueCode] = None) -> Rule:
    """Award the first tier whose threshold ``getter(subject)`` reaches.

    *tiers* is ordered highest threshold first.  A missing value fails every
    tier.
    """

    def rule(subject: Any) -> RuleOutcome:
        value = getter(subject)
        if value is not None:
            for threshold, points in tiers:
                if value >= threshold:
                    return RuleOutcome.award(points)
        return RuleOutcome.flag(code) if code else NOTHING

    return rule


def _count(items: Optional[Sequence]) -> int:
    return len(items) if items else 0


# ------------------------------------------------------------------
# Shared SERP sub-score
# ------------------------------------------------------------------

def serp_points(serp: Optional[SerpAnalysis]) -> int:
    """Map-pack (0-20) plus organic (0-10) visibility points."""
    if serp is None:
        return 0
    summary = serp.rankings_summary

    top3 = summary.keywords_in_top_3_map_pack
    if top3 >= 3:
        points = 20
    elif top3 >= 2:
        points = 15
    elif top3 >= 1:
        points = 10
    elif summary.map_pack_appearances > 0:
        points = 5
    else:
        points = 0

    top10 = summary.keywords_in_top_10_organic
    if top10 >= 3:
        points += 10
    elif top10 >= 2:
        points += 7
    elif top10 >= 1:
        points += 5
    elif summary.organic_appearances > 0:
        points += 2
    return round_half_up(points)


# ------------------------------------------------------------------
# SEO rules
# ------------------------------------------------------------------

SEO_PROFILE_RULES: list[Rule] = [
    requires(lambda p: p.formatted_address, 2, IssueCode.SEO_ADDRESS_MISSING),
    requires(lambda p: p.phone, 2, IssueCode.SEO_PHONE_MISSING),
    requires(lambda p: p.website, 2, IssueCode.SEO_WEBSITE_MISSING),
    requires(lambda p: p.opening_hours, 2, IssueCode.SEO_HOURS_MISSING),
    requires(lambda p: p.photo_count > 0, 2, IssueCode.SEO_PHOTOS_MISSING),
]


def title_rule(site: WebsiteAnalysis) -> RuleOutcome:
    title = site.page_content.title
    if not title:
        return RuleOutcome.flag(IssueCode.TITLE_MISSING)
    if 30 <= len(title) <= 60:
        return RuleOutcome.award(8)
    return RuleOutcome.award(5) + RuleOutcome.flag(IssueCode.TITLE_LENGTH)


def meta_description_rule(site: WebsiteAnalysis) -> RuleOutcome:
    meta = site.page_content.meta_description
    if not meta:
        return RuleOutcome.flag(IssueCode.META_DESCRIPTION_MISSING)
    if 120 <= len(meta) <= 160:
        return RuleOutcome.award(8)
    return RuleOutcome.award(5) + RuleOutcome.flag(IssueCode.META_DESCRIPTION_LENGTH)


def h1_rule(site: WebsiteAnalysis) -> RuleOutcome:
    h1_count = _count(site.page_content.h1_elements)
    if h1_count == 0:
        return RuleOutcome.flag(IssueCode.H1_MISSING)
    if h1_count > 1:
        return RuleOutcome.award(4) + RuleOutcome.flag(IssueCode.MULTIPLE_H1)
    return RuleOutcome.award(4)


def alt_text_rule(site: WebsiteAnalysis) -> RuleOutcome:
    content = site.page_content
    if not content.images:
        return NOTHING
    ratio = content.alt_text_ratio
    outcome = RuleOutcome.award(round_half_up(ratio * 5))
    if ratio < 0.8:
        outcome += RuleOutcome.flag(
            IssueCode.IMAGES_MISSING_ALT, pct=round_half_up((1 - ratio) * 100)
        )
    return outcome


def robots_rule(site: WebsiteAnalysis) -> RuleOutcome:
    robots = site.technical_seo.robots_content
    if not robots:
        return NOTHING
    if "noindex" in robots:
        return RuleOutcome.flag(IssueCode.NOINDEX)
    return RuleOutcome.award(2)


def context_rule(site: WebsiteAnalysis) -> RuleOutcome:
    context = site.page_content.context_analysis
    if context is None:
        return NOTHING
    outcome = RuleOutcome.award(min(5, context.matched_count()))
    if not context.business_name_in_title:
        outcome += RuleOutcome.flag(IssueCode.NAME_NOT_IN_TITLE)
    if not context.location_in_title:
        outcome += RuleOutcome.flag(IssueCode.LOCATION_NOT_IN_TITLE)
    return outcome


_LIGHTHOUSE_TIERS = [(90, 5), (70, 3), (50, 1)]

SEO_WEBSITE_RULES: list[Rule] = [
    # content
    title_rule,
    meta_description_rule,
    h1_rule,
    alt_text_rule,
    requires(lambda s: s.page_content.structured_data_count > 0, 5,
             IssueCode.STRUCTURED_DATA_MISSING),
    requires(lambda s: s.page_content.has_favicon, 2, IssueCode.FAVICON_MISSING),
    requires(lambda s: s.page_content.word_count >= 300, 3, IssueCode.THIN_CONTENT),
    # technical
    requires(lambda s: s.technical_seo.is_secure, 5, IssueCode.NOT_HTTPS),
    requires(lambda s: s.technical_seo.has_meta_viewport, 3, IssueCode.VIEWPORT_MISSING),
    requires(lambda s: s.technical_seo.has_canonical, 2, IssueCode.CANONICAL_MISSING),
    robots_rule,
    # performance
    tiered(lambda s: s.performance_metrics.lighthouse_performance, _LIGHTHOUSE_TIERS,
           IssueCode.POOR_PERFORMANCE_SEO),
    tiered(lambda s: s.performance_metrics.lighthouse_seo, _LIGHTHOUSE_TIERS,
           IssueCode.POOR_LIGHTHOUSE_SEO),
    context_rule,
]


# ------------------------------------------------------------------
# UX rules
# ------------------------------------------------------------------

UX_PROFILE_RULES: list[Rule] = [
    requires(lambda p: p.phone, 5, IssueCode.UX_PHONE_MISSING),
    requires(lambda p: p.opening_hours, 5, IssueCode.UX_HOURS_MISSING),
    requires(lambda p: p.photo_count >= 3, 5, IssueCode.UX_FEW_PHOTOS),
    tiered(lambda p: p.rating, [(4.0, 5), (3.0, 2)], IssueCode.UX_LOW_RATING),
]


def page_load_rule(site: WebsiteAnalysis) -> RuleOutcome:
    load_ms = site.performance_metrics.page_load_time_ms
    if load_ms is not None:
        if load_ms < 3000:
            return RuleOutcome.award(5)
        if load_ms < 5000:
            return RuleOutcome.award(2)
    return RuleOutcome.flag(IssueCode.SLOW_PAGE_LOAD)


UX_WEBSITE_RULES: list[Rule] = [
    requires(lambda s: s.ux_analysis.contact_forms > 0, 10, IssueCode.NO_CONTACT_FORMS),
    requires(lambda s: s.ux_analysis.chat_widgets > 0, 8, IssueCode.NO_CHAT_WIDGET),
    requires(lambda s: s.page_content.contact_info.phones, 4, IssueCode.PHONE_NOT_VISIBLE),
    requires(lambda s: s.page_content.contact_info.emails, 3, IssueCode.EMAIL_NOT_VISIBLE),
    tiered(lambda s: s.page_content.cta_elements, [(3, 15), (1, 8)], IssueCode.NO_CTA),
    requires(lambda s: s.ux_analysis.testimonial_elements > 0, 10, IssueCode.NO_TESTIMONIALS),
    requires(lambda s: s.ux_analysis.social_links > 0, 5, IssueCode.NO_SOCIAL_LINKS),
    requires(lambda s: s.ux_analysis.faq_elements > 0, 5, IssueCode.NO_FAQ),
    requires(lambda s: s.mobile_analysis.is_mobile_friendly, 10,
             IssueCode.NOT_MOBILE_FRIENDLY),
    page_load_rule,
    tiered(lambda s: s.performance_metrics.lighthouse_accessibility, [(90, 5), (70, 3)],
           IssueCode.POOR_ACCESSIBILITY),
]


# ------------------------------------------------------------------
# Local listing rules
# ------------------------------------------------------------------

LOCAL_PROFILE_RULES: list[Rule] = [
    requires(lambda p: p.name, 5),
    requires(lambda p: p.formatted_address, 8, IssueCode.LOCAL_ADDRESS_INCOMPLETE),
    requires(lambda p: p.phone, 5, IssueCode.LOCAL_PHONE_MISSING),
    requires(lambda p: p.website, 5, IssueCode.LOCAL_WEBSITE_MISSING),
    requires(lambda p: p.opening_hours, 5, IssueCode.LOCAL_HOURS_MISSING),
    tiered(lambda p: p.photo_count, [(5, 5), (1, 3)], IssueCode.LOCAL_NEEDS_MORE_PHOTOS),
    requires(lambda p: p.types, 4, IssueCode.LOCAL_CATEGORIES_MISSING),
    requires(lambda p: p.business_status == BusinessStatus.OPERATIONAL, 3,
             IssueCode.LOCAL_NOT_OPERATIONAL),
]


def _frequency_rule(reviews: ReviewAnalysis) -> RuleOutcome:
    frequency = reviews.review_stats.review_frequency
    if frequency == "high":
        return RuleOutcome.award(2)
    if frequency == "medium":
        return RuleOutcome.award(1)
    return RuleOutcome.flag(IssueCode.LOW_REVIEW_FREQUENCY)


LOCAL_REVIEW_RULES: list[Rule] = [
    tiered(lambda r: r.review_stats.total_reviews, [(20, 8), (10, 5), (5, 3)],
           IssueCode.NEEDS_MORE_REVIEWS),
    tiered(lambda r: r.review_stats.average_rating, [(4.0, 6), (3.5, 4), (3.0, 2)],
           IssueCode.LOW_AVERAGE_RATING),
    tiered(lambda r: r.sentiment_summary.positive_percentage, [(70, 4), (50, 2)],
           IssueCode.LOW_POSITIVE_SENTIMENT),
    _frequency_rule,
]
