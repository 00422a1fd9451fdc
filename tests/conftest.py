"""Shared pytest fixtures for Business Analysis tests."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Ensure project root is on sys.path so 'business_analysis' is importable.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from business_analysis.modules.analysis.entities import (  # noqa: E402
    BusinessProfile,
    BusinessStatus,
    ContactInfo,
    ContextAnalysis,
    ImageInfo,
    InferredDetails,
    KeywordRanking,
    MapPackCompetitor,
    MobileAnalysis,
    PageContent,
    PerformanceMetrics,
    Photo,
    RankingsSummary,
    ResolvedProfile,
    Review,
    ReviewAnalysis,
    ReviewStats,
    SentimentSummary,
    SerpAnalysis,
    CompetitorSummary,
    TechnicalSeo,
    UxSignals,
    WebsiteAnalysis,
)


@pytest.fixture(autouse=True)
def _reset_db_engine():
    """Autouse fixture: reset the global DB engine before and after every test."""
    from business_analysis.database import reset_engine
    reset_engine()
    yield
    reset_engine()


@pytest.fixture()
def test_db():
    """Provide an in-memory SQLite database with all tables created."""
    from business_analysis.database import init_db, reset_engine
    reset_engine()
    db_url = "sqlite:///:memory:"
    init_db(database_url=db_url, echo=False)
    yield db_url


@pytest.fixture()
def mock_llm_client():
    """Return a mock LLMClient that returns canned responses."""
    client = MagicMock()
    client.is_configured = True
    client.generate_text = AsyncMock(return_value="Mock LLM response text.")
    client.generate_json = AsyncMock(return_value={
        "industry": "restaurant",
        "keywords": ["pizza", "pizza delivery"],
    })
    return client


# ---------------------------------------------------------------------------
# Domain objects
# ---------------------------------------------------------------------------

@pytest.fixture()
def full_profile():
    """A complete, operational profile with a website."""
    return BusinessProfile(
        name="Joe's Pizza",
        place_id="ChIJabc123",
        formatted_address="123 Main St, Austin, TX 78701, USA",
        phone="(512) 555-0100",
        website="https://joespizza.com",
        rating=4.6,
        review_count=87,
        types=("restaurant", "pizza_restaurant", "food"),
        opening_hours={"open_now": True, "weekday_text": ["Monday: 11AM-10PM"] * 7},
        photos=tuple(Photo(photo_reference=f"ref{i}") for i in range(6)),
        business_status=BusinessStatus.OPERATIONAL,
        reviews=(
            Review(author_name="Ann", rating=5, text="Best pizza in town"),
            Review(author_name="Bob", rating=2, text="Slow delivery"),
        ),
        price_level=2,
        description="Wood-fired pizza in downtown Austin",
        service_options={"delivery": True, "dine_in": True},
    )


@pytest.fixture()
def no_website_profile():
    """A sparse profile without a website or reviews."""
    return BusinessProfile(
        name="Corner Shop",
        place_id="ChIJnoweb",
        formatted_address="5 Elm St, Gaston, SC 29053, USA",
        phone="(803) 555-0199",
        website=None,
        rating=None,
        review_count=0,
        types=("store",),
        business_status=BusinessStatus.OPERATIONAL,
    )


@pytest.fixture()
def website_analysis():
    """A healthy website analysis."""
    return WebsiteAnalysis(
        url="https://joespizza.com",
        status_code=200,
        page_content=PageContent(
            title="Joe's Pizza | Wood-Fired Pizza in Austin, TX",
            meta_description="x" * 140,
            h1_elements=("Joe's Pizza",),
            images=(ImageInfo(src="a.jpg", alt="pizza", has_alt=True),),
            has_favicon=True,
            structured_data_count=1,
            word_count=650,
            cta_elements=4,
            contact_info=ContactInfo(phones=("(512) 555-0100",), emails=("hi@joespizza.com",)),
            context_analysis=ContextAnalysis(
                business_name_in_title=True,
                location_in_title=True,
                business_name_in_meta=True,
                location_in_meta=True,
                industry_keywords_found=True,
                local_keywords_found=True,
            ),
        ),
        technical_seo=TechnicalSeo(is_secure=True, has_meta_viewport=True, has_canonical=True,
                                   robots_content="index, follow"),
        ux_analysis=UxSignals(forms=1, contact_forms=1, chat_widgets=1, social_links=3,
                              testimonial_elements=2, faq_elements=1),
        mobile_analysis=MobileAnalysis(is_mobile_friendly=True, has_viewport=True,
                                       fits_in_viewport=True),
        performance_metrics=PerformanceMetrics(
            page_load_time_ms=1200,
            lighthouse_performance=92,
            lighthouse_seo=95,
            lighthouse_accessibility=91,
            lighthouse_best_practices=88,
        ),
    )


@pytest.fixture()
def serp_analysis():
    """SERP analysis with the business in the map pack for two keywords."""
    rival = MapPackCompetitor(name="Rival Pizza", position=1, rating=4.8, reviews=300)
    return SerpAnalysis(
        business_name="Joe's Pizza",
        location="Austin,Texas,United States",
        keywords_analyzed=("pizza austin", "pizza delivery"),
        industry="restaurant",
        keyword_results=(
            KeywordRanking(keyword="pizza austin", local_position=2, organic_position=4,
                           in_map_pack=True, in_top_3_map_pack=True, in_top_10_organic=True,
                           competitors_in_map_pack=(rival,)),
            KeywordRanking(keyword="pizza delivery", local_position=3, in_map_pack=True,
                           in_top_3_map_pack=True),
        ),
        rankings_summary=RankingsSummary(
            total_keywords=2,
            successful_analyses=2,
            average_map_pack_position=2.5,
            average_organic_position=4.0,
            map_pack_appearances=2,
            organic_appearances=1,
            keywords_in_top_3_map_pack=2,
            keywords_in_top_10_organic=1,
        ),
        competitors=(
            CompetitorSummary(name="Rival Pizza", type="local", appearances=2,
                              average_position=1.0, positions=(1, 1), rating=4.8, reviews=300),
        ),
    )


@pytest.fixture()
def empty_serp_analysis():
    """SERP analysis with no appearances anywhere."""
    return SerpAnalysis(
        business_name="Corner Shop",
        location="Gaston,South Carolina,United States",
        keywords_analyzed=("corner shop",),
        rankings_summary=RankingsSummary(total_keywords=1, successful_analyses=1),
    )


@pytest.fixture()
def review_analysis():
    """A positive review analysis."""
    return ReviewAnalysis(
        place_id="ChIJabc123",
        total_reviews=87,
        analyzed_reviews=50,
        sentiment_summary=SentimentSummary(positive=40, neutral=6, negative=4,
                                           positive_percentage=80, neutral_percentage=12,
                                           negative_percentage=8, average_sentiment=0.72),
        review_stats=ReviewStats(total_reviews=87, average_rating=4.6,
                                 rating_distribution={4: 20, 5: 67},
                                 review_frequency="high", confidence_score=100),
    )


# ---------------------------------------------------------------------------
# Collaborator mocks
# ---------------------------------------------------------------------------

@pytest.fixture()
def collaborators(full_profile, website_analysis, serp_analysis, review_analysis):
    """AsyncMock collaborators returning the sample analyses."""
    resolver = MagicMock()
    resolver.resolve_by_place_id = AsyncMock(return_value=full_profile)
    resolver.search = AsyncMock(
        return_value=ResolvedProfile(profile=full_profile, place_id=full_profile.place_id)
    )
    website = MagicMock()
    website.analyze = AsyncMock(return_value=website_analysis)
    ranking = MagicMock()
    ranking.analyze = AsyncMock(return_value=serp_analysis)
    reviews = MagicMock()
    reviews.analyze = AsyncMock(return_value=review_analysis)
    inferrer = MagicMock()
    inferrer.infer = AsyncMock(
        return_value=InferredDetails(industry="restaurant", keywords=("pizza austin", "pizza delivery"))
    )
    return {
        "resolver": resolver,
        "website_auditor": website,
        "ranking_analyzer": ranking,
        "review_analyzer": reviews,
        "inferrer": inferrer,
    }
