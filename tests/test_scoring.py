"""Tests for the scoring rules and the ScoringEngine."""

import dataclasses

import pytest

from business_analysis.modules.analysis.entities import (
    AnalysisContext,
    AnalysisFailure,
    BusinessProfile,
    ImageInfo,
    PageContent,
    RankingsSummary,
    ReviewAnalysis,
    SerpAnalysis,
    TechnicalSeo,
    WebsiteAnalysis,
)
from business_analysis.modules.analysis.issue_codes import IssueCode, Severity
from business_analysis.modules.analysis.rules import (
    RuleOutcome,
    alt_text_rule,
    fold,
    requires,
    serp_points,
    tiered,
    title_rule,
)
from business_analysis.modules.analysis.scoring import (
    ScoringEngine,
    score_category,
    score_color,
)


def _codes(result):
    return {issue.code for issue in result.issues}


# ===========================================================================
# Rule building blocks
# ===========================================================================
class TestRuleBuilders:
    """requires / tiered / fold compose immutable outcomes."""

    def test_requires_awards_points(self):
        rule = requires(lambda s: s["ok"], 3, IssueCode.FAVICON_MISSING)
        assert rule({"ok": True}) == RuleOutcome(points=3)

    def test_requires_flags_issue(self):
        rule = requires(lambda s: s["ok"], 3, IssueCode.FAVICON_MISSING)
        outcome = rule({"ok": False})
        assert outcome.points == 0
        assert [i.code for i in outcome.issues] == [IssueCode.FAVICON_MISSING]

    def test_requires_without_code_is_silent(self):
        assert requires(lambda s: False, 5)(None).issues == ()

    @pytest.mark.parametrize("value,expected", [
        (95, 5), (90, 5), (75, 3), (50, 1), (49, 0), (None, 0),
    ])
    def test_tiered_picks_first_reached_tier(self, value, expected):
        rule = tiered(lambda s: s, [(90, 5), (70, 3), (50, 1)], IssueCode.POOR_LIGHTHOUSE_SEO)
        outcome = rule(value)
        assert outcome.points == expected
        assert bool(outcome.issues) == (expected == 0)

    def test_fold_sums_in_order(self):
        rules = [
            requires(lambda s: True, 2),
            requires(lambda s: False, 4, IssueCode.NO_FAQ),
            requires(lambda s: False, 1, IssueCode.NO_SOCIAL_LINKS),
        ]
        outcome = fold(rules, object())
        assert outcome.points == 2
        assert [i.code for i in outcome.issues] == [IssueCode.NO_FAQ, IssueCode.NO_SOCIAL_LINKS]

    def test_fold_of_nothing(self):
        assert fold([], None) == RuleOutcome()


class TestWebsiteRules:
    """Individual website content rules."""

    @pytest.mark.parametrize("title,points,code", [
        ("", 0, IssueCode.TITLE_MISSING),
        ("Short", 5, IssueCode.TITLE_LENGTH),
        ("A" * 45, 8, None),
        ("A" * 61, 5, IssueCode.TITLE_LENGTH),
    ])
    def test_title_rule(self, title, points, code):
        site = WebsiteAnalysis(url="https://x.com", page_content=PageContent(title=title))
        outcome = title_rule(site)
        assert outcome.points == points
        assert _codes(outcome) == ({code} if code else set())

    def test_alt_text_rounds_half_up(self):
        images = (
            ImageInfo(has_alt=True), ImageInfo(has_alt=False),
        )
        site = WebsiteAnalysis(url="https://x.com", page_content=PageContent(images=images))
        outcome = alt_text_rule(site)
        # 0.5 * 5 = 2.5 rounds to 3
        assert outcome.points == 3
        assert outcome.issues[0].message == "50% of images missing alt text"

    def test_alt_text_skipped_without_images(self):
        site = WebsiteAnalysis(url="https://x.com")
        assert alt_text_rule(site) == RuleOutcome()


class TestSerpPoints:
    """Shared map-pack + organic sub-score."""

    @pytest.mark.parametrize("top3,map_apps,top10,org_apps,expected", [
        (3, 3, 3, 3, 30),
        (2, 2, 1, 1, 20),
        (1, 1, 0, 0, 10),
        (0, 2, 0, 1, 7),
        (0, 0, 2, 2, 7),
        (0, 0, 0, 0, 0),
    ])
    def test_points(self, top3, map_apps, top10, org_apps, expected):
        serp = SerpAnalysis(
            business_name="B", location="L",
            rankings_summary=RankingsSummary(
                keywords_in_top_3_map_pack=top3, map_pack_appearances=map_apps,
                keywords_in_top_10_organic=top10, organic_appearances=org_apps,
            ),
        )
        assert serp_points(serp) == expected

    def test_missing_serp_scores_zero(self):
        assert serp_points(None) == 0


# ===========================================================================
# ScoringEngine
# ===========================================================================
class TestScoringEngine:
    """End-to-end category scores."""

    def test_complete_business(self, full_profile, website_analysis, serp_analysis,
                               review_analysis):
        context = AnalysisContext(profile=full_profile, website=website_analysis,
                                  serp=serp_analysis, reviews=review_analysis)
        output = ScoringEngine().score(context)

        assert output.seo.score == 92
        assert output.seo.breakdown == {
            "business_profile": 10, "website_analysis": 62, "serp_analysis": 20,
        }
        assert output.ux.score == 100
        assert output.local_listing.score == 80
        assert output.local_listing.breakdown == {
            "business_profile": 40, "serp_analysis": 20, "review_analysis": 20,
        }
        assert output.summary_score == 93
        assert output.all_issues == ()

    def test_no_website_caps(self, no_website_profile, empty_serp_analysis):
        context = AnalysisContext(profile=no_website_profile, serp=empty_serp_analysis,
                                  reviews=ReviewAnalysis(place_id="ChIJnoweb"))
        output = ScoringEngine().score(context)

        assert output.seo.score == 4
        assert output.seo.breakdown["website_analysis"] == 0
        assert IssueCode.SEO_NO_WEBSITE in _codes(output.seo)
        assert IssueCode.SEO_WEBSITE_MISSING in _codes(output.seo)

        assert output.ux.score == 5
        assert IssueCode.UX_NO_WEBSITE in _codes(output.ux)

        assert output.local_listing.score == 25
        assert output.local_listing.breakdown["serp_analysis"] == 0
        assert output.local_listing.breakdown["review_analysis"] == 0
        assert IssueCode.NEEDS_MORE_REVIEWS in _codes(output.local_listing)
        assert output.summary_score == 9

    def test_caps_hold_for_strong_profile_without_website(self, full_profile, serp_analysis,
                                                          review_analysis):
        profile = dataclasses.replace(full_profile, website=None)
        strong_serp = dataclasses.replace(
            serp_analysis,
            rankings_summary=RankingsSummary(keywords_in_top_3_map_pack=5,
                                             keywords_in_top_10_organic=5,
                                             map_pack_appearances=5, organic_appearances=5),
        )
        context = AnalysisContext(profile=profile, serp=strong_serp, reviews=review_analysis)
        output = ScoringEngine().score(context)
        # 8 profile points + 30 SERP points stays under the cap
        assert output.seo.score == 38
        assert output.seo.score <= 40
        assert output.ux.score == 20
        assert output.ux.score <= 30

    def test_website_failure_scores_zero_website_points(self, full_profile, serp_analysis,
                                                         review_analysis):
        failure = AnalysisFailure(source="website", error="timeout", url=full_profile.website)
        context = AnalysisContext(profile=full_profile, website=failure,
                                  serp=serp_analysis, reviews=review_analysis)
        output = ScoringEngine().score(context)

        assert output.seo.breakdown["website_analysis"] == 0
        assert output.seo.score == 30
        assert IssueCode.SEO_WEBSITE_ANALYSIS_FAILED in _codes(output.seo)
        assert output.ux.score == 20
        assert IssueCode.UX_WEBSITE_ANALYSIS_FAILED in _codes(output.ux)

    def test_missing_reviews_flagged(self, full_profile, website_analysis, serp_analysis):
        context = AnalysisContext(profile=full_profile, website=website_analysis,
                                  serp=serp_analysis, reviews=None)
        output = ScoringEngine().score(context)
        assert output.local_listing.breakdown["review_analysis"] == 0
        assert _codes(output.local_listing) == {IssueCode.REVIEW_ANALYSIS_UNAVAILABLE}

    def test_noindex_is_critical(self, full_profile, website_analysis):
        site = dataclasses.replace(
            website_analysis, technical_seo=TechnicalSeo(is_secure=True, has_meta_viewport=True,
                                                         has_canonical=True,
                                                         robots_content="noindex"),
        )
        output = ScoringEngine().score(AnalysisContext(profile=full_profile, website=site))
        noindex = [i for i in output.seo.issues if i.code == IssueCode.NOINDEX]
        assert noindex and noindex[0].severity == Severity.CRITICAL

    def test_scoring_is_deterministic(self, full_profile, website_analysis, serp_analysis,
                                      review_analysis):
        context = AnalysisContext(profile=full_profile, website=website_analysis,
                                  serp=serp_analysis, reviews=review_analysis)
        engine = ScoringEngine()
        assert engine.score(context).to_dict() == engine.score(context).to_dict()

    def test_summary_bound_for_empty_profile(self):
        output = ScoringEngine().score(AnalysisContext(profile=BusinessProfile(name="")))
        assert 0 <= output.summary_score <= 100
        expected = round(0.4 * output.seo.score + 0.4 * output.ux.score
                         + 0.2 * output.local_listing.score + 1e-9)
        assert output.summary_score == expected


class TestScoreBands:
    """Label and color thresholds."""

    @pytest.mark.parametrize("score,label,color", [
        (95, "Excellent", "green"),
        (80, "Good", "lightgreen"),
        (72, "Fair", "yellow"),
        (60, "Poor", "orange"),
        (12, "Critical", "red"),
    ])
    def test_bands(self, score, label, color):
        assert score_category(score) == label
        assert score_color(score) == color
