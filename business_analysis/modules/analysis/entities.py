"""Immutable value types flowing between the orchestrator and its collaborators.

Every entity is a frozen dataclass with a ``to_dict()`` that yields plain
JSON-serializable data (tuples become lists, enums become their values).
Collaborator results are either a fully populated analysis entity or an
:class:`AnalysisFailure`; nothing in between.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Union

from business_analysis.utils.validators import validate_analysis_request


def to_jsonable(value: Any) -> Any:
    """Recursively convert dataclass output into JSON-friendly primitives."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {
            (k.value if isinstance(k, Enum) else k): to_jsonable(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


class _Serializable:
    def to_dict(self) -> dict[str, Any]:
        return to_jsonable(asdict(self))


# ------------------------------------------------------------------
# Business profile
# ------------------------------------------------------------------

class BusinessStatus(str, Enum):
    OPERATIONAL = "OPERATIONAL"
    CLOSED_TEMPORARILY = "CLOSED_TEMPORARILY"
    CLOSED_PERMANENTLY = "CLOSED_PERMANENTLY"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Optional[str]) -> "BusinessStatus":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class Review(_Serializable):
    author_name: str
    rating: int
    text: str = ""
    relative_time_description: str = ""


@dataclass(frozen=True)
class Photo(_Serializable):
    photo_reference: str
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass(frozen=True)
class BusinessProfile(_Serializable):
    """Canonical facts about one business, as resolved for a single request."""

    name: str
    place_id: str = ""
    formatted_address: str = ""
    phone: str = ""
    website: Optional[str] = None
    rating: Optional[float] = None
    review_count: int = 0
    types: tuple[str, ...] = ()
    opening_hours: Optional[dict[str, Any]] = None
    photos: tuple[Photo, ...] = ()
    business_status: BusinessStatus = BusinessStatus.UNKNOWN
    reviews: tuple[Review, ...] = ()
    price_level: Optional[int] = None
    description: Optional[str] = None
    social_links: dict[str, str] = field(default_factory=dict)
    service_options: dict[str, bool] = field(default_factory=dict)

    @property
    def has_website(self) -> bool:
        return bool(self.website and self.website.strip())

    @property
    def photo_count(self) -> int:
        return len(self.photos)


@dataclass(frozen=True)
class ResolvedProfile:
    """Result of a name+location search: the profile and its place id."""

    profile: BusinessProfile
    place_id: str


@dataclass(frozen=True)
class ProfileEnrichment(_Serializable):
    """Extra profile facts found on the Google results page for the business.

    Only fills gaps: values already present on the resolved profile win.
    """

    description: Optional[str] = None
    social_links: dict[str, str] = field(default_factory=dict)
    service_options: dict[str, bool] = field(default_factory=dict)
    weekday_text: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.description or self.social_links
                    or self.service_options or self.weekday_text)

    def fill(self, profile: BusinessProfile) -> BusinessProfile:
        changes: dict[str, Any] = {}
        if self.description and not profile.description:
            changes["description"] = self.description
        if self.social_links and not profile.social_links:
            changes["social_links"] = dict(self.social_links)
        missing_options = {
            k: v for k, v in self.service_options.items() if k not in profile.service_options
        }
        if missing_options:
            changes["service_options"] = {**profile.service_options, **missing_options}
        if self.weekday_text and not profile.opening_hours:
            changes["opening_hours"] = {
                "open_now": None,
                "periods": None,
                "weekday_text": list(self.weekday_text),
            }
        return replace(profile, **changes) if changes else profile


# ------------------------------------------------------------------
# Failure variant
# ------------------------------------------------------------------

@dataclass(frozen=True)
class AnalysisFailure(_Serializable):
    """Error variant returned by any collaborator instead of a result.

    Attributes:
        source: Which collaborator failed (``website``, ``serp``, ``reviews``).
        error: Human-readable error message.
        url: The audited URL, for website failures.
    """

    source: str
    error: str
    url: Optional[str] = None


# ------------------------------------------------------------------
# Website audit
# ------------------------------------------------------------------

@dataclass(frozen=True)
class ImageInfo(_Serializable):
    src: str = ""
    alt: str = ""
    has_alt: bool = False


@dataclass(frozen=True)
class ContactInfo(_Serializable):
    phones: tuple[str, ...] = ()
    emails: tuple[str, ...] = ()


@dataclass(frozen=True)
class ContextAnalysis(_Serializable):
    business_name_in_title: bool = False
    location_in_title: bool = False
    business_name_in_meta: bool = False
    location_in_meta: bool = False
    industry_keywords_found: bool = False
    local_keywords_found: bool = False

    def matched_count(self) -> int:
        return sum(1 for flag in asdict(self).values() if flag)


@dataclass(frozen=True)
class PageContent(_Serializable):
    title: str = ""
    meta_description: str = ""
    h1_elements: tuple[str, ...] = ()
    h2_elements: tuple[str, ...] = ()
    images: tuple[ImageInfo, ...] = ()
    has_favicon: bool = False
    structured_data_count: int = 0
    word_count: int = 0
    cta_elements: int = 0
    contact_info: ContactInfo = field(default_factory=ContactInfo)
    context_analysis: Optional[ContextAnalysis] = None

    @property
    def alt_text_ratio(self) -> float:
        if not self.images:
            return 0.0
        return sum(1 for img in self.images if img.has_alt) / len(self.images)


@dataclass(frozen=True)
class TechnicalSeo(_Serializable):
    is_secure: bool = False
    has_meta_viewport: bool = False
    has_canonical: bool = False
    robots_content: str = ""
    canonical_url: Optional[str] = None


@dataclass(frozen=True)
class UxSignals(_Serializable):
    forms: int = 0
    contact_forms: int = 0
    chat_widgets: int = 0
    social_links: int = 0
    testimonial_elements: int = 0
    faq_elements: int = 0


@dataclass(frozen=True)
class MobileAnalysis(_Serializable):
    is_mobile_friendly: bool = False
    has_viewport: bool = False
    fits_in_viewport: bool = False


@dataclass(frozen=True)
class PerformanceMetrics(_Serializable):
    page_load_time_ms: Optional[int] = None
    lighthouse_performance: Optional[int] = None
    lighthouse_seo: Optional[int] = None
    lighthouse_accessibility: Optional[int] = None
    lighthouse_best_practices: Optional[int] = None


@dataclass(frozen=True)
class WebsiteAnalysis(_Serializable):
    url: str
    status_code: Optional[int] = None
    page_content: PageContent = field(default_factory=PageContent)
    technical_seo: TechnicalSeo = field(default_factory=TechnicalSeo)
    ux_analysis: UxSignals = field(default_factory=UxSignals)
    mobile_analysis: MobileAnalysis = field(default_factory=MobileAnalysis)
    performance_metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    analysis_duration_ms: int = 0


# ------------------------------------------------------------------
# Search rankings
# ------------------------------------------------------------------

@dataclass(frozen=True)
class MapPackCompetitor(_Serializable):
    name: str
    position: int
    rating: Optional[float] = None
    reviews: Optional[int] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    type: Optional[str] = None


@dataclass(frozen=True)
class OrganicCompetitor(_Serializable):
    name: str
    position: int
    url: Optional[str] = None
    snippet: Optional[str] = None
    displayed_link: Optional[str] = None


@dataclass(frozen=True)
class KeywordRanking(_Serializable):
    keyword: str
    location: str = ""
    organic_position: Optional[int] = None
    local_position: Optional[int] = None
    in_map_pack: bool = False
    in_top_3_map_pack: bool = False
    in_top_10_organic: bool = False
    competitors_in_map_pack: tuple[MapPackCompetitor, ...] = ()
    competitors_in_organic: tuple[OrganicCompetitor, ...] = ()
    total_organic_results: int = 0
    total_local_results: int = 0
    search_volume_estimate: str = "unknown"


@dataclass(frozen=True)
class RankingsSummary(_Serializable):
    total_keywords: int = 0
    successful_analyses: int = 0
    failed_analyses: int = 0
    average_map_pack_position: Optional[float] = None
    average_organic_position: Optional[float] = None
    map_pack_appearances: int = 0
    organic_appearances: int = 0
    keywords_in_top_3_map_pack: int = 0
    keywords_in_top_10_organic: int = 0


@dataclass(frozen=True)
class CompetitorSummary(_Serializable):
    """A competitor rolled up across every analyzed keyword."""

    name: str
    type: str
    appearances: int
    average_position: float
    positions: tuple[int, ...] = ()
    rating: Optional[float] = None
    reviews: Optional[int] = None
    address: Optional[str] = None
    website: Optional[str] = None
    url: Optional[str] = None


@dataclass(frozen=True)
class LocalSeoMetrics(_Serializable):
    map_pack_visibility: float = 0.0
    organic_visibility: float = 0.0
    local_seo_score: float = 0.0
    average_map_pack_position: Optional[float] = None
    average_organic_position: Optional[float] = None


@dataclass(frozen=True)
class SerpAnalysis(_Serializable):
    business_name: str
    location: str
    keywords_analyzed: tuple[str, ...] = ()
    industry: Optional[str] = None
    keyword_results: tuple[KeywordRanking, ...] = ()
    rankings_summary: RankingsSummary = field(default_factory=RankingsSummary)
    competitors: tuple[CompetitorSummary, ...] = ()
    local_seo_metrics: LocalSeoMetrics = field(default_factory=LocalSeoMetrics)
    analysis_duration_ms: int = 0


# ------------------------------------------------------------------
# Review sentiment
# ------------------------------------------------------------------

class InsightType(str, Enum):
    STRENGTH = "strength"
    CONCERN = "concern"
    OPPORTUNITY = "opportunity"
    INFO = "info"


@dataclass(frozen=True)
class SentimentSummary(_Serializable):
    positive: int = 0
    neutral: int = 0
    negative: int = 0
    positive_percentage: int = 0
    neutral_percentage: int = 0
    negative_percentage: int = 0
    average_sentiment: float = 0.0


@dataclass(frozen=True)
class ReviewStats(_Serializable):
    total_reviews: int = 0
    average_rating: float = 0.0
    rating_distribution: dict[int, int] = field(default_factory=dict)
    review_frequency: str = "unknown"
    confidence_score: int = 0


@dataclass(frozen=True)
class ReviewTopic(_Serializable):
    topic: str
    frequency: int = 0
    sentiment: str = "neutral"
    keywords: tuple[str, ...] = ()


@dataclass(frozen=True)
class ReviewInsight(_Serializable):
    type: InsightType
    title: str
    description: str = ""
    impact: str = "low"
    supporting_data: str = ""


@dataclass(frozen=True)
class ReviewAnalysis(_Serializable):
    place_id: str = ""
    total_reviews: int = 0
    analyzed_reviews: int = 0
    sentiment_summary: SentimentSummary = field(default_factory=SentimentSummary)
    review_stats: ReviewStats = field(default_factory=ReviewStats)
    topics: tuple[ReviewTopic, ...] = ()
    insights: tuple[ReviewInsight, ...] = ()
    analysis_duration_ms: int = 0


WebsiteResult = Union[WebsiteAnalysis, AnalysisFailure]
SerpResult = Union[SerpAnalysis, AnalysisFailure]
ReviewResult = Union[ReviewAnalysis, AnalysisFailure]


# ------------------------------------------------------------------
# Request and per-request context
# ------------------------------------------------------------------

@dataclass(frozen=True)
class AnalysisRequest:
    """Identifying input for one analysis run.

    Either ``place_id`` or both ``business_name`` and ``location``.
    """

    business_name: Optional[str] = None
    location: Optional[str] = None
    place_id: Optional[str] = None
    keywords: tuple[str, ...] = ()
    industry: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "AnalysisRequest":
        """Build a request from a raw payload, validating it first.

        Raises:
            ValueError: If the payload fails validation.
        """
        ok, message = validate_analysis_request(
            place_id=payload.get("place_id"),
            business_name=payload.get("business_name"),
            location=payload.get("location"),
            keywords=payload.get("keywords"),
            industry=payload.get("industry"),
        )
        if not ok:
            raise ValueError(message)
        return cls(
            business_name=(payload.get("business_name") or "").strip() or None,
            location=(payload.get("location") or "").strip() or None,
            place_id=payload.get("place_id") or None,
            keywords=tuple(k.strip() for k in payload.get("keywords") or () if k.strip()),
            industry=(payload.get("industry") or "").strip() or None,
        )


@dataclass(frozen=True)
class BusinessContext:
    """What the website auditor needs to know about the business."""

    business_name: str
    location: str = ""
    industry: Optional[str] = None


@dataclass(frozen=True)
class InferredDetails:
    industry: str
    keywords: tuple[str, ...]

    @classmethod
    def fallback(cls, business_name: str) -> "InferredDetails":
        """Defaults used when inference is unavailable or fails."""
        return cls(
            industry="general business",
            keywords=(business_name.lower(), "local business", "services"),
        )


@dataclass(frozen=True)
class AnalysisContext:
    """Everything the scorers and the recommendation engine read.

    Collaborator results are kept as returned (value, failure, or ``None``);
    the ``usable_*`` accessors collapse failures to ``None``.
    """

    profile: BusinessProfile
    website: Optional[WebsiteResult] = None
    serp: Optional[SerpResult] = None
    reviews: Optional[ReviewResult] = None
    industry: Optional[str] = None
    keywords: tuple[str, ...] = ()

    @property
    def has_website(self) -> bool:
        return self.profile.has_website

    @property
    def usable_website(self) -> Optional[WebsiteAnalysis]:
        return self.website if isinstance(self.website, WebsiteAnalysis) else None

    @property
    def usable_serp(self) -> Optional[SerpAnalysis]:
        return self.serp if isinstance(self.serp, SerpAnalysis) else None

    @property
    def usable_reviews(self) -> Optional[ReviewAnalysis]:
        return self.reviews if isinstance(self.reviews, ReviewAnalysis) else None
