"""Tests for report assembly, the profile checklist, rendering and persistence."""

import dataclasses
import json

import pytest

from business_analysis.modules.analysis.checklist import (
    MAX_CHECKLIST_SCORE,
    evaluate_profile_checklist,
)
from business_analysis.modules.analysis.entities import (
    AnalysisContext,
    BusinessProfile,
)
from business_analysis.modules.analysis.recommendations import RecommendationEngine
from business_analysis.modules.analysis.report import (
    AnalysisMetadata,
    ReportAssembler,
    competitive_intelligence,
    competitors_ranking,
    keyword_performance,
)
from business_analysis.modules.analysis.scoring import ScoringEngine
from business_analysis.modules.reporting.report_renderer import ReportRenderer

REPORT_KEYS = {
    "summary_score", "seo_score", "ux_score", "local_listing_score",
    "score_breakdowns", "score_categories", "summary_metrics",
    "google_business_profile", "local_listings_analysis", "website_analysis",
    "local_seo_analysis", "keyword_performance", "competitors_ranking",
    "review_sentiment", "seo_issues", "ux_issues", "local_listing_issues",
    "recommendations", "analysis_metadata", "competitive_intelligence",
}


def _build_report(context, assembler=None):
    scoring = ScoringEngine().score(context)
    recommendations = RecommendationEngine().recommend(context, scoring)
    metadata = AnalysisMetadata(
        analyzed_at="2024-05-01T12:00:00+00:00",
        analysis_duration_ms=1234,
        keywords_analyzed=context.keywords,
        industry=context.industry,
    )
    return (assembler or ReportAssembler()).assemble(context, scoring, recommendations, metadata)


@pytest.fixture()
def full_report(full_profile, website_analysis, serp_analysis, review_analysis):
    context = AnalysisContext(profile=full_profile, website=website_analysis,
                              serp=serp_analysis, reviews=review_analysis,
                              industry="restaurant", keywords=("pizza austin", "pizza delivery"))
    return _build_report(context).to_dict()


@pytest.fixture()
def sparse_report(no_website_profile, empty_serp_analysis):
    context = AnalysisContext(profile=no_website_profile, serp=empty_serp_analysis,
                              industry="retail", keywords=("corner shop",))
    return _build_report(context).to_dict()


# ===========================================================================
# ReportAssembler
# ===========================================================================
class TestReportAssembler:
    """Shape and derived sections of the assembled report."""

    def test_top_level_keys(self, full_report):
        assert set(full_report) == REPORT_KEYS

    def test_report_is_json_serializable(self, sparse_report):
        json.dumps(sparse_report)

    def test_score_categories(self, full_report):
        assert full_report["score_categories"]["summary"] == {"label": "Excellent", "color": "green"}
        assert full_report["score_categories"]["local_listing"] == {"label": "Good",
                                                                    "color": "lightgreen"}

    def test_summary_metrics_for_healthy_business(self, full_report):
        assert full_report["summary_metrics"] == {
            "total_issues_found": 0,
            "critical_issues": 0,
            "total_categories_reviewed": 3,
            "categories_needing_work": 0,
            "overall_health": "Excellent",
        }

    def test_summary_metrics_for_sparse_business(self, sparse_report):
        metrics = sparse_report["summary_metrics"]
        assert metrics["overall_health"] == "Poor"
        assert metrics["categories_needing_work"] == 3
        assert metrics["critical_issues"] >= 1
        total = (len(sparse_report["seo_issues"]) + len(sparse_report["ux_issues"])
                 + len(sparse_report["local_listing_issues"]))
        assert metrics["total_issues_found"] == total

    def test_business_profile_section(self, full_report):
        profile = full_report["google_business_profile"]
        assert profile["place_id"] == "ChIJabc123"
        assert profile["address"] == "123 Main St, Austin, TX 78701, USA"
        assert profile["business_status"] == "OPERATIONAL"
        assert len(profile["photos"]) == 5
        assert "photo_url" not in profile["photos"][0]

    def test_photo_urls_attached(self, full_profile):
        assembler = ReportAssembler(photo_url=lambda ref, width: f"https://img/{ref}?w={width}")
        data = _build_report(AnalysisContext(profile=full_profile), assembler).to_dict()
        photo = data["google_business_profile"]["photos"][0]
        assert photo["photo_url"] == "https://img/ref0?w=800"
        assert photo["thumbnail_url"] == "https://img/ref0?w=400"

    def test_keyword_performance(self, serp_analysis):
        section = keyword_performance(serp_analysis)
        assert section["summary"]["total_keywords_analyzed"] == 2
        assert section["summary"]["ranking_in_map_pack"] == 2
        assert section["summary"]["ranking_in_organic"] == 1
        first = section["detailed_results"][0]
        assert first["your_business"]["map_pack_status"] == "#2 map pack"
        assert first["your_business"]["organic_status"] == "#4 organic"
        assert first["top_competitor"]["name"] == "Rival Pizza"
        second = section["detailed_results"][1]
        assert second["your_business"]["organic_status"] == "Unranked organic"
        assert second["top_competitor"] is None

    def test_competitors_ranking(self, full_profile, serp_analysis):
        section = competitors_ranking(full_profile, serp_analysis)
        assert section["your_business"]["position"] == 2.5
        assert section["local_competitors_found"] == 1
        assert section["organic_competitors_found"] == 0
        assert section["competitors"][0]["rank"] == 1

    def test_missing_serp_leaves_sections_empty(self, full_profile):
        data = _build_report(AnalysisContext(profile=full_profile)).to_dict()
        assert data["keyword_performance"] is None
        assert data["competitors_ranking"] is None
        assert data["local_seo_analysis"] is None


# ===========================================================================
# Competitive intelligence
# ===========================================================================
class TestCompetitiveIntelligence:
    """Standing against local competitors and industry benchmarks."""

    def test_healthy_business(self, full_report):
        intel = full_report["competitive_intelligence"]
        assert intel["market_position"] == {
            "market_leader": "Rival Pizza",
            "your_ranking_among_peers": 2,
            "total_competitors_in_market": 1,
        }
        assert intel["competitor_advantages"] == [{
            "name": "Rival Pizza",
            "rating_advantage": "0.2 stars higher",
            "review_count_advantage": "213 more reviews",
            "ranking_advantage": "Ranks 2 positions higher",
        }]
        bench = intel["industry_benchmarks"]
        assert bench["average_rating_in_industry"] == 4.2
        assert bench["your_rating_vs_industry"] == "Above average"
        assert bench["your_reviews_vs_industry"] == "Below average"
        assert bench["gap_to_top_quartile"] == 0
        assert bench["businesses_outperforming_you"] == 1
        assert intel["urgent_issues"] == []

    def test_sparse_business(self, sparse_report):
        intel = sparse_report["competitive_intelligence"]
        assert intel["market_position"]["market_leader"] is None
        assert intel["market_position"]["your_ranking_among_peers"] == 1
        assert intel["competitor_advantages"] == []
        bench = intel["industry_benchmarks"]
        assert bench["average_rating_in_industry"] == 4.1
        assert bench["your_rating_vs_industry"] == "No rating"
        assert bench["your_reviews_vs_industry"] == "No reviews"
        assert [i["issue"] for i in intel["urgent_issues"]] == [
            "Insufficient social proof",
            "Invisible in local search",
            "Poor overall digital presence",
        ]

    def test_without_serp(self, full_profile):
        intel = competitive_intelligence(full_profile, None, "restaurant", 90)
        assert intel["market_position"]["your_ranking_among_peers"] is None
        assert intel["competitor_advantages"] == []
        assert [i["severity"] for i in intel["urgent_issues"]] == ["critical"]

    def test_low_rating_is_critical(self, full_profile, serp_analysis):
        profile = dataclasses.replace(full_profile, rating=3.7)
        intel = competitive_intelligence(profile, serp_analysis, "restaurant", 75)
        assert intel["urgent_issues"][0]["issue"] == "Low rating"
        assert intel["industry_benchmarks"]["gap_to_top_quartile"] == 0.8


# ===========================================================================
# Profile checklist
# ===========================================================================
class TestProfileChecklist:
    """Local Listings completeness checklist."""

    def test_max_score(self):
        assert MAX_CHECKLIST_SCORE == 22

    def test_complete_profile_scores_full_marks(self, full_profile):
        profile = dataclasses.replace(full_profile,
                                      social_links={"facebook": "https://fb.com/joes"})
        result = evaluate_profile_checklist(profile, ["pizza"])
        assert result["overall_score"] == 22
        assert result["completion_percentage"] == 100
        assert result["overall_status"] == "excellent"
        assert result["recommendations"] == []

    def test_keyword_items_need_matching_keywords(self, full_profile):
        result = evaluate_profile_checklist(full_profile, ["pizza austin", "pizza delivery"])
        components = result["components"]
        assert components["keywords_in_description"]["status"] == "needs_optimization"
        assert components["categories_match_keywords"]["status"] == "needs_optimization"
        assert components["social_media_links"]["status"] == "missing"
        assert result["overall_score"] == 19

    def test_without_keywords_status_unknown(self, full_profile):
        result = evaluate_profile_checklist(full_profile)
        assert result["components"]["keywords_in_description"]["status"] == "unknown"

    def test_sparse_profile(self, no_website_profile):
        result = evaluate_profile_checklist(no_website_profile, ["corner shop"])
        components = result["components"]
        assert components["website"]["points_earned"] == 0
        assert components["reviews"]["status"] == "missing"
        assert components["phone_number"]["points_earned"] == 2
        assert result["overall_status"] == "needs_improvement"
        priorities = {r["component"]: r["priority"] for r in result["recommendations"]}
        assert priorities["website"] == "high"
        assert priorities["price_range"] == "medium"

    @pytest.mark.parametrize("count,status,earned", [
        (0, "missing", 0),
        (3, "needs_more", 2),
        (12, "complete", 2),
    ])
    def test_photo_tiers(self, count, status, earned):
        from business_analysis.modules.analysis.entities import Photo
        profile = BusinessProfile(name="B",
                                  photos=tuple(Photo(photo_reference=str(i)) for i in range(count)))
        photos = evaluate_profile_checklist(profile)["components"]["photos"]
        assert photos["status"] == status
        assert photos["points_earned"] == earned


# ===========================================================================
# ReportRenderer
# ===========================================================================
class TestReportRenderer:
    """JSON and HTML output."""

    def test_render_json_round_trips(self, full_report):
        output = ReportRenderer().render_json(full_report)
        assert json.loads(output)["summary_score"] == full_report["summary_score"]
        assert "\n  " in output

    def test_render_html_contains_sections(self, sparse_report):
        html_out = ReportRenderer().render_html(sparse_report)
        assert html_out.startswith("<!DOCTYPE html>")
        assert html_out.rstrip().endswith("</html>")
        assert "Corner Shop" in html_out
        assert "<svg" in html_out
        assert "SEO Issues" in html_out
        assert "Create a Business Website" in html_out
        assert "badge-critical" in html_out

    def test_render_html_escapes_text(self, sparse_report):
        sparse_report["google_business_profile"]["name"] = "<script>alert(1)</script>"
        html_out = ReportRenderer().render_html(sparse_report)
        assert "<script>alert(1)</script>" not in html_out
        assert "&lt;script&gt;" in html_out

    def test_unknown_theme_falls_back(self, full_report):
        renderer = ReportRenderer(company_name="Acme Audits")
        html_out = renderer.render_html(full_report, template="nope")
        assert ReportRenderer.THEMES["professional"]["bg"] in html_out
        assert "Acme Audits" in html_out

    def test_modern_theme(self, full_report):
        html_out = ReportRenderer().render_html(full_report, template="modern")
        assert ReportRenderer.THEMES["modern"]["bg"] in html_out


# ===========================================================================
# Persistence
# ===========================================================================
class TestReportPersistence:
    """save_report / list_reports / load_report against in-memory SQLite."""

    def test_save_and_load(self, test_db, full_report):
        from business_analysis.models import load_report, save_report

        record_id = save_report(full_report)
        assert record_id > 0
        loaded = load_report(record_id)
        assert loaded["summary_score"] == full_report["summary_score"]
        assert loaded["google_business_profile"]["name"] == "Joe's Pizza"

    def test_load_missing(self, test_db):
        from business_analysis.models import load_report

        assert load_report(999) is None

    def test_list_reports_newest_first(self, test_db, full_report, sparse_report):
        from business_analysis.models import list_reports, save_report

        first = save_report(full_report)
        second = save_report(sparse_report)
        rows = list_reports()
        assert [r["id"] for r in rows] == [second, first]
        assert rows[0]["business_name"] == "Corner Shop"
        assert rows[1]["summary_score"] == full_report["summary_score"]

    def test_list_reports_filters_by_place(self, test_db, full_report, sparse_report):
        from business_analysis.models import list_reports, save_report

        save_report(full_report)
        save_report(sparse_report)
        save_report(full_report)
        rows = list_reports(place_id="ChIJabc123")
        assert len(rows) == 2
        assert {r["place_id"] for r in rows} == {"ChIJabc123"}
        assert len(list_reports(limit=1)) == 1
