"""Tests for the RecommendationEngine: mapping, dedup, ordering and cap."""

import dataclasses

import pytest

from business_analysis.modules.analysis.entities import (
    AnalysisContext,
    BusinessProfile,
    InsightType,
    PageContent,
    PerformanceMetrics,
    ReviewAnalysis,
    ReviewInsight,
    WebsiteAnalysis,
)
from business_analysis.modules.analysis.issue_codes import Issue, IssueCode
from business_analysis.modules.analysis.recommendations import (
    MAX_RECOMMENDATIONS,
    Recommendation,
    RecommendationEngine,
    deduplicate,
    prioritize,
)
from business_analysis.modules.analysis.scoring import ScoringEngine

_PRIORITY = {"critical": 1, "high": 2, "medium": 3, "low": 4}
_IMPACT = {"high": 1, "medium": 2, "low": 3}


def _rec(title="T", priority="medium", impact="medium", type_="seo", category="website"):
    return Recommendation(
        type=type_, category=category, priority=priority, title=title,
        description="d", impact=impact, effort="low", timeframe="1 week",
    )


def _recommend(context):
    scoring = ScoringEngine().score(context)
    return RecommendationEngine().recommend(context, scoring)


# ===========================================================================
# prioritize / deduplicate
# ===========================================================================
class TestPrioritize:
    """Dedup by (type, category, title), stable sort, cap at 15."""

    def test_duplicates_collapse_to_first(self):
        first = _rec(title="Add Schema Markup", priority="medium")
        second = _rec(title="Add Schema Markup", priority="critical")
        result = deduplicate([first, second])
        assert result == [first]

    def test_same_title_different_type_kept(self):
        recs = [_rec(title="X", type_="seo"), _rec(title="X", type_="ux")]
        assert len(deduplicate(recs)) == 2

    def test_ordering_by_priority_then_impact(self):
        recs = [
            _rec("a", "low", "high"),
            _rec("b", "critical", "low"),
            _rec("c", "high", "medium"),
            _rec("d", "high", "high"),
            _rec("e", "critical", "high"),
        ]
        assert [r.title for r in prioritize(recs)] == ["e", "b", "d", "c", "a"]

    def test_sort_is_stable_for_ties(self):
        recs = [_rec("first"), _rec("second"), _rec("third")]
        assert [r.title for r in prioritize(recs)] == ["first", "second", "third"]

    def test_cap(self):
        recs = [_rec(title=f"rec {i}") for i in range(40)]
        assert len(prioritize(recs)) == MAX_RECOMMENDATIONS == 15


# ===========================================================================
# RecommendationEngine
# ===========================================================================
class TestRecommendationEngine:
    """Issue-driven and data-driven recommendations."""

    def test_no_website_gets_critical_website_recommendation(self, no_website_profile,
                                                              empty_serp_analysis):
        context = AnalysisContext(profile=no_website_profile, serp=empty_serp_analysis,
                                  reviews=ReviewAnalysis())
        recs = _recommend(context)

        titles = [r.title for r in recs]
        assert "Create a Business Website" in titles
        website = recs[titles.index("Create a Business Website")]
        assert website.priority == "critical"
        assert "Improve Local Search Rankings" in titles
        assert "Increase Customer Reviews" in titles

    def test_output_is_sorted_and_capped(self, no_website_profile, empty_serp_analysis):
        context = AnalysisContext(profile=no_website_profile, serp=empty_serp_analysis,
                                  reviews=ReviewAnalysis())
        recs = _recommend(context)
        assert len(recs) <= 15
        keys = [(_PRIORITY[r.priority], _IMPACT[r.impact]) for r in recs]
        assert keys == sorted(keys)

    def test_output_has_no_duplicates(self, no_website_profile, empty_serp_analysis):
        context = AnalysisContext(profile=no_website_profile, serp=empty_serp_analysis,
                                  reviews=ReviewAnalysis())
        recs = _recommend(context)
        keys = [r.dedup_key for r in recs]
        assert len(keys) == len(set(keys))

    def test_template_actions_are_personalised(self):
        profile = BusinessProfile(name="Joe's Pizza", formatted_address="12 Oak Ave, Austin, TX",
                                  website="https://joespizza.com")
        context = AnalysisContext(
            profile=profile,
            website=WebsiteAnalysis(url="https://joespizza.com", page_content=PageContent()),
            industry="restaurant",
        )
        recs = _recommend(context)
        title_rec = next(r for r in recs if r.title == "Add Page Title Tags")
        assert 'Add title tag like "Joe\'s Pizza - restaurant in Austin"' in title_rec.specific_actions

    def test_category_mismatch_falls_back_to_generic(self):
        # SEO_PHOTOS_MISSING is a medium SEO issue; its photo template is a local one.
        issue = Issue.of(IssueCode.SEO_PHOTOS_MISSING)
        assert RecommendationEngine.for_issue(issue, {}) is None

    def test_high_issue_without_template_gets_generic(self):
        issue = Issue.of(IssueCode.POOR_LIGHTHOUSE_SEO)
        rec = RecommendationEngine.for_issue(issue, {})
        assert rec.title == "Fix SEO Issue"
        assert rec.category == "general"
        assert rec.priority == "high"
        assert rec.impact == "medium"
        assert rec.description == "Lighthouse SEO score is poor"

    def test_low_issue_without_template_is_dropped(self):
        assert RecommendationEngine.for_issue(Issue.of(IssueCode.NO_FAQ), {}) is None

    @pytest.mark.parametrize("performance,words,expected", [
        (50, 100, {"Improve Website Performance", "Add More Content"}),
        (90, 100, {"Add More Content"}),
        (50, 800, {"Improve Website Performance"}),
        (None, 800, set()),
    ])
    def test_data_driven_website_recommendations(self, website_analysis, performance, words,
                                                 expected):
        site = dataclasses.replace(
            website_analysis,
            performance_metrics=PerformanceMetrics(lighthouse_performance=performance),
            page_content=dataclasses.replace(website_analysis.page_content, word_count=words),
        )
        context = AnalysisContext(profile=BusinessProfile(name="B"), website=site)
        titles = {r.title for r in RecommendationEngine().from_analysis_data(context)}
        assert titles == expected

    def test_review_concerns_become_recommendations(self, full_profile, review_analysis):
        reviews = dataclasses.replace(review_analysis, insights=(
            ReviewInsight(type=InsightType.CONCERN, title="Slow delivery",
                          description="Several reviews mention late orders", impact="high"),
            ReviewInsight(type=InsightType.STRENGTH, title="Great crust"),
        ))
        context = AnalysisContext(profile=full_profile, reviews=reviews)
        recs = RecommendationEngine().from_analysis_data(context)
        assert len(recs) == 1
        assert recs[0].title == "Address Customer Concern: Slow delivery"
        assert recs[0].priority == "high"
        assert recs[0].type == "reviews"

    def test_recommend_is_deterministic(self, no_website_profile, empty_serp_analysis):
        context = AnalysisContext(profile=no_website_profile, serp=empty_serp_analysis,
                                  reviews=ReviewAnalysis())
        first = [r.to_dict() for r in _recommend(context)]
        second = [r.to_dict() for r in _recommend(context)]
        assert first == second
