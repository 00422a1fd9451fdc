"""Issue codes emitted by the scorers.

Each scorer emits :class:`Issue` objects identified by an :class:`IssueCode`.
The code, not the message, is what the recommendation engine dispatches on;
messages are display text kept in :data:`ISSUE_CATALOG`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class IssueCategory(str, Enum):
    SEO = "seo"
    UX = "ux"
    LOCAL = "local"


class IssueCode(str, Enum):
    """Stable identifiers for every finding the scorers can produce."""

    # SEO: business profile
    SEO_ADDRESS_MISSING = "seo_address_missing"
    SEO_PHONE_MISSING = "seo_phone_missing"
    SEO_WEBSITE_MISSING = "seo_website_missing"
    SEO_HOURS_MISSING = "seo_hours_missing"
    SEO_PHOTOS_MISSING = "seo_photos_missing"
    SEO_NO_WEBSITE = "seo_no_website"
    SEO_WEBSITE_ANALYSIS_FAILED = "seo_website_analysis_failed"

    # SEO: website content and technical signals
    TITLE_MISSING = "title_missing"
    TITLE_LENGTH = "title_length"
    META_DESCRIPTION_MISSING = "meta_description_missing"
    META_DESCRIPTION_LENGTH = "meta_description_length"
    H1_MISSING = "h1_missing"
    MULTIPLE_H1 = "multiple_h1"
    IMAGES_MISSING_ALT = "images_missing_alt"
    STRUCTURED_DATA_MISSING = "structured_data_missing"
    FAVICON_MISSING = "favicon_missing"
    THIN_CONTENT = "thin_content"
    NOT_HTTPS = "not_https"
    VIEWPORT_MISSING = "viewport_missing"
    CANONICAL_MISSING = "canonical_missing"
    NOINDEX = "noindex"
    POOR_PERFORMANCE_SEO = "poor_performance_seo"
    POOR_LIGHTHOUSE_SEO = "poor_lighthouse_seo"
    NAME_NOT_IN_TITLE = "name_not_in_title"
    LOCATION_NOT_IN_TITLE = "location_not_in_title"

    # UX: business profile
    UX_PHONE_MISSING = "ux_phone_missing"
    UX_HOURS_MISSING = "ux_hours_missing"
    UX_FEW_PHOTOS = "ux_few_photos"
    UX_LOW_RATING = "ux_low_rating"
    UX_NO_WEBSITE = "ux_no_website"
    UX_WEBSITE_ANALYSIS_FAILED = "ux_website_analysis_failed"

    # UX: website signals
    NO_CONTACT_FORMS = "no_contact_forms"
    NO_CHAT_WIDGET = "no_chat_widget"
    PHONE_NOT_VISIBLE = "phone_not_visible"
    EMAIL_NOT_VISIBLE = "email_not_visible"
    NO_CTA = "no_cta"
    NO_TESTIMONIALS = "no_testimonials"
    NO_SOCIAL_LINKS = "no_social_links"
    NO_FAQ = "no_faq"
    NOT_MOBILE_FRIENDLY = "not_mobile_friendly"
    SLOW_PAGE_LOAD = "slow_page_load"
    POOR_ACCESSIBILITY = "poor_accessibility"

    # Local listing
    LOCAL_ADDRESS_INCOMPLETE = "local_address_incomplete"
    LOCAL_PHONE_MISSING = "local_phone_missing"
    LOCAL_WEBSITE_MISSING = "local_website_missing"
    LOCAL_HOURS_MISSING = "local_hours_missing"
    LOCAL_NEEDS_MORE_PHOTOS = "local_needs_more_photos"
    LOCAL_CATEGORIES_MISSING = "local_categories_missing"
    LOCAL_NOT_OPERATIONAL = "local_not_operational"
    NEEDS_MORE_REVIEWS = "needs_more_reviews"
    LOW_AVERAGE_RATING = "low_average_rating"
    LOW_POSITIVE_SENTIMENT = "low_positive_sentiment"
    LOW_REVIEW_FREQUENCY = "low_review_frequency"
    REVIEW_ANALYSIS_UNAVAILABLE = "review_analysis_unavailable"


@dataclass(frozen=True)
class IssueSpec:
    category: IssueCategory
    severity: Severity
    message: str


_S, _U, _L = IssueCategory.SEO, IssueCategory.UX, IssueCategory.LOCAL
_CRIT, _HIGH, _MED, _LOW = Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW

ISSUE_CATALOG: dict[IssueCode, IssueSpec] = {
    IssueCode.SEO_ADDRESS_MISSING: IssueSpec(_S, _MED, "Business address is missing"),
    IssueCode.SEO_PHONE_MISSING: IssueSpec(_S, _MED, "Business phone number is missing"),
    IssueCode.SEO_WEBSITE_MISSING: IssueSpec(_S, _HIGH, "Business website is missing"),
    IssueCode.SEO_HOURS_MISSING: IssueSpec(_S, _LOW, "Business hours are not specified"),
    IssueCode.SEO_PHOTOS_MISSING: IssueSpec(_S, _MED, "Business photos are missing"),
    IssueCode.SEO_NO_WEBSITE: IssueSpec(_S, _CRIT, "No website found for SEO optimization"),
    IssueCode.SEO_WEBSITE_ANALYSIS_FAILED: IssueSpec(
        _S, _CRIT, "Website analysis failed or website is inaccessible"
    ),
    IssueCode.TITLE_MISSING: IssueSpec(_S, _HIGH, "Page title is missing"),
    IssueCode.TITLE_LENGTH: IssueSpec(
        _S, _MED, "Page title length is not optimal (30-60 characters)"
    ),
    IssueCode.META_DESCRIPTION_MISSING: IssueSpec(_S, _HIGH, "Meta description is missing"),
    IssueCode.META_DESCRIPTION_LENGTH: IssueSpec(
        _S, _MED, "Meta description length is not optimal (120-160 characters)"
    ),
    IssueCode.H1_MISSING: IssueSpec(_S, _MED, "H1 tag is missing"),
    IssueCode.MULTIPLE_H1: IssueSpec(_S, _LOW, "Multiple H1 tags found (should be only one)"),
    # message is formatted with the missing percentage at emit time
    IssueCode.IMAGES_MISSING_ALT: IssueSpec(_S, _MED, "{pct}% of images missing alt text"),
    IssueCode.STRUCTURED_DATA_MISSING: IssueSpec(
        _S, _MED, "Structured data (Schema markup) is missing"
    ),
    IssueCode.FAVICON_MISSING: IssueSpec(_S, _LOW, "Favicon is missing"),
    IssueCode.THIN_CONTENT: IssueSpec(
        _S, _LOW, "Page content is too short (less than 300 words)"
    ),
    IssueCode.NOT_HTTPS: IssueSpec(_S, _HIGH, "Website is not using HTTPS"),
    IssueCode.VIEWPORT_MISSING: IssueSpec(_S, _MED, "Meta viewport tag is missing"),
    IssueCode.CANONICAL_MISSING: IssueSpec(_S, _LOW, "Canonical URL is missing"),
    IssueCode.NOINDEX: IssueSpec(_S, _CRIT, "Page is set to noindex"),
    IssueCode.POOR_PERFORMANCE_SEO: IssueSpec(
        _S, _MED, "Page performance is poor (affects SEO)"
    ),
    IssueCode.POOR_LIGHTHOUSE_SEO: IssueSpec(_S, _HIGH, "Lighthouse SEO score is poor"),
    IssueCode.NAME_NOT_IN_TITLE: IssueSpec(_S, _MED, "Business name not found in page title"),
    IssueCode.LOCATION_NOT_IN_TITLE: IssueSpec(_S, _MED, "Location not found in page title"),
    IssueCode.UX_PHONE_MISSING: IssueSpec(
        _U, _MED, "Phone number missing for customer contact"
    ),
    IssueCode.UX_HOURS_MISSING: IssueSpec(
        _U, _MED, "Business hours missing for customer information"
    ),
    IssueCode.UX_FEW_PHOTOS: IssueSpec(
        _U, _LOW, "Insufficient photos (recommended: 3 or more)"
    ),
    IssueCode.UX_LOW_RATING: IssueSpec(_U, _MED, "Low customer rating affects user trust"),
    IssueCode.UX_NO_WEBSITE: IssueSpec(
        _U, _CRIT, "No website available for enhanced user experience"
    ),
    IssueCode.UX_WEBSITE_ANALYSIS_FAILED: IssueSpec(
        _U, _CRIT, "Website analysis failed or website is inaccessible"
    ),
    IssueCode.NO_CONTACT_FORMS: IssueSpec(_U, _HIGH, "No contact forms found on website"),
    IssueCode.NO_CHAT_WIDGET: IssueSpec(
        _U, _MED, "No chat widget for instant customer support"
    ),
    IssueCode.PHONE_NOT_VISIBLE: IssueSpec(_U, _MED, "Phone number not visible on website"),
    IssueCode.EMAIL_NOT_VISIBLE: IssueSpec(_U, _LOW, "Email address not visible on website"),
    IssueCode.NO_CTA: IssueSpec(_U, _HIGH, "No clear call-to-action buttons found"),
    IssueCode.NO_TESTIMONIALS: IssueSpec(
        _U, _MED, "No testimonials or reviews displayed on website"
    ),
    IssueCode.NO_SOCIAL_LINKS: IssueSpec(_U, _LOW, "No social media links found"),
    IssueCode.NO_FAQ: IssueSpec(_U, _LOW, "No FAQ section found"),
    IssueCode.NOT_MOBILE_FRIENDLY: IssueSpec(_U, _HIGH, "Website is not mobile-friendly"),
    IssueCode.SLOW_PAGE_LOAD: IssueSpec(
        _U, _MED, "Page load time is too slow (affects user experience)"
    ),
    IssueCode.POOR_ACCESSIBILITY: IssueSpec(
        _U, _MED, "Poor accessibility score affects user experience"
    ),
    IssueCode.LOCAL_ADDRESS_INCOMPLETE: IssueSpec(_L, _HIGH, "Business address is incomplete"),
    IssueCode.LOCAL_PHONE_MISSING: IssueSpec(_L, _MED, "Business phone number is missing"),
    IssueCode.LOCAL_WEBSITE_MISSING: IssueSpec(_L, _MED, "Business website is missing"),
    IssueCode.LOCAL_HOURS_MISSING: IssueSpec(_L, _MED, "Business hours are not specified"),
    IssueCode.LOCAL_NEEDS_MORE_PHOTOS: IssueSpec(
        _L, _MED, "Business needs more photos (recommended: 5 or more)"
    ),
    IssueCode.LOCAL_CATEGORIES_MISSING: IssueSpec(_L, _LOW, "Business categories are missing"),
    IssueCode.LOCAL_NOT_OPERATIONAL: IssueSpec(_L, _HIGH, "Business status is not operational"),
    IssueCode.NEEDS_MORE_REVIEWS: IssueSpec(_L, _MED, "Business needs more customer reviews"),
    IssueCode.LOW_AVERAGE_RATING: IssueSpec(_L, _HIGH, "Low average rating needs improvement"),
    IssueCode.LOW_POSITIVE_SENTIMENT: IssueSpec(
        _L, _MED, "Customer sentiment is not positive enough"
    ),
    IssueCode.LOW_REVIEW_FREQUENCY: IssueSpec(_L, _LOW, "Review frequency is low"),
    IssueCode.REVIEW_ANALYSIS_UNAVAILABLE: IssueSpec(_L, _MED, "Review analysis unavailable"),
}


@dataclass(frozen=True)
class Issue:
    """One scoring finding."""

    code: IssueCode
    category: IssueCategory
    severity: Severity
    message: str

    @classmethod
    def of(cls, code: IssueCode, **fmt) -> "Issue":
        """Build an issue from the catalog, formatting its message with *fmt*."""
        entry = ISSUE_CATALOG[code]
        message = entry.message.format(**fmt) if fmt else entry.message
        return cls(code=code, category=entry.category, severity=entry.severity, message=message)

    def to_dict(self) -> dict:
        return {
            "code": self.code.value,
            "type": self.category.value,
            "severity": self.severity.value,
            "message": self.message,
        }
