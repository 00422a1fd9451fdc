"""Business profile completeness checklist ("Local Listings" report section)."""

from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

from business_analysis.modules.analysis.entities import BusinessProfile
from business_analysis.utils.helpers import round_half_up

# Checklist items with their point weights; the max score is their sum.
PROFILE_CHECKLIST_ITEMS = [
    {"key": "business_name", "label": "Business Name", "points": 2},
    {"key": "description", "label": "Description", "points": 2},
    {"key": "keywords_in_description", "label": "Description includes relevant keywords", "points": 1},
    {"key": "business_hours", "label": "Business Hours", "points": 2},
    {"key": "phone_number", "label": "Phone Number", "points": 2},
    {"key": "website", "label": "Website", "points": 2},
    {"key": "categories", "label": "Business Categories", "points": 2},
    {"key": "categories_match_keywords", "label": "Categories match keywords", "points": 1},
    {"key": "price_range", "label": "Price range", "points": 1},
    {"key": "service_options", "label": "Service options", "points": 1},
    {"key": "social_media_links", "label": "Social media links", "points": 1},
    {"key": "photos", "label": "Business Photos", "points": 2},
    {"key": "reviews", "label": "Customer Reviews", "points": 2},
    {"key": "review_quality", "label": "Quality Reviews", "points": 1},
]

MAX_CHECKLIST_SCORE = sum(item["points"] for item in PROFILE_CHECKLIST_ITEMS)

_COMPLETED = {"complete", "optimized", "excellent", "good"}
_NEEDS_WORK = {"needs_optimization", "needs_more", "fair", "poor"}

_SERVICE_LABELS = {
    "delivery": "Delivery",
    "takeout": "Takeout",
    "dine_in": "Dine-in",
    "curbside_pickup": "Curbside pickup",
    "serves_breakfast": "Breakfast",
    "serves_lunch": "Lunch",
    "serves_dinner": "Dinner",
    "serves_brunch": "Brunch",
    "serves_beer": "Beer",
    "serves_wine": "Wine",
    "serves_vegetarian_food": "Vegetarian options",
}

# (passed, status, value, recommendation)
CheckResult = tuple[bool, str, str, Optional[str]]


def _any_keyword_in(text: str, keywords: Sequence[str]) -> bool:
    text = text.lower()
    return any(k.lower() in text for k in keywords)


def _check_name(p: BusinessProfile, keywords: Sequence[str]) -> CheckResult:
    if p.name:
        return True, "complete", p.name, None
    return False, "missing", "Not provided", None


def _check_description(p: BusinessProfile, keywords: Sequence[str]) -> CheckResult:
    if p.description:
        return True, "complete", p.description, None
    return (
        False, "missing", "Not provided",
        "Add a compelling business description that includes your main keywords "
        "and what makes you unique",
    )


def _check_description_keywords(p: BusinessProfile, keywords: Sequence[str]) -> CheckResult:
    if not p.description:
        return False, "missing", "No description", "Add a business description first"
    if not keywords:
        return False, "unknown", p.description, "Cannot analyze without keywords"
    if _any_keyword_in(p.description, keywords):
        return True, "optimized", p.description, None
    sample = '", "'.join(keywords[:3])
    return (
        False, "needs_optimization", p.description,
        f'Include relevant keywords like "{sample}" in your description',
    )


def _check_hours(p: BusinessProfile, keywords: Sequence[str]) -> CheckResult:
    days = (p.opening_hours or {}).get("weekday_text") or []
    if days:
        return True, "complete", f"{len(days)} days configured", None
    return (
        False, "missing", "Not provided",
        "Add your business hours to help customers plan their visits and reduce inquiries",
    )


def _check_phone(p: BusinessProfile, keywords: Sequence[str]) -> CheckResult:
    if p.phone:
        return True, "complete", p.phone, None
    return (
        False, "missing", "Not provided",
        "Add your phone number to make it easy for customers to contact you",
    )


def _check_website(p: BusinessProfile, keywords: Sequence[str]) -> CheckResult:
    if p.has_website:
        return True, "complete", p.website, None
    return (
        False, "missing", "Not provided",
        "Add your website URL to drive traffic and provide more information to customers",
    )


def _check_categories(p: BusinessProfile, keywords: Sequence[str]) -> CheckResult:
    if p.types:
        return True, "complete", f"{len(p.types)} categories", None
    return (
        False, "missing", "Not provided",
        "Add relevant business categories to help customers find you",
    )


def _check_categories_keywords(p: BusinessProfile, keywords: Sequence[str]) -> CheckResult:
    if not p.types:
        return False, "missing", "No categories", "Add business categories first"
    value = ", ".join(p.types)
    if not keywords:
        return False, "unknown", value, "Cannot analyze without keywords"
    matched = any(_any_keyword_in(category, [k]) for category in p.types for k in keywords)
    if matched:
        return True, "optimized", value, None
    return (
        False, "needs_optimization", value,
        "Consider adding categories that match your target keywords",
    )


def _check_price(p: BusinessProfile, keywords: Sequence[str]) -> CheckResult:
    if p.price_level is not None:
        return True, "complete", "$" * p.price_level, None
    return (
        False, "missing", "Not provided",
        "Add price range information to help customers understand your pricing",
    )


def _check_service_options(p: BusinessProfile, keywords: Sequence[str]) -> CheckResult:
    options = {k: v for k, v in p.service_options.items() if k in _SERVICE_LABELS}
    if not options:
        return (
            False, "missing", "Not provided",
            "Listing service options helps customers understand how they can "
            "interact with your business",
        )
    enabled = [_SERVICE_LABELS[k] for k in _SERVICE_LABELS if options.get(k) is True]
    if enabled:
        return True, "complete", ", ".join(enabled), None
    return (
        False, "needs_configuration", "None specified",
        "Configure your service options (delivery, takeout, dine-in, etc.) to help "
        "customers understand how they can interact with your business",
    )


def _check_social(p: BusinessProfile, keywords: Sequence[str]) -> CheckResult:
    platforms = [name.capitalize() for name, url in p.social_links.items() if url]
    if platforms:
        return True, "complete", ", ".join(platforms), None
    return (
        False, "missing", "Not provided",
        "Social media links extend your reach and provide additional ways for "
        "customers to engage",
    )


def _check_photos(p: BusinessProfile, keywords: Sequence[str]) -> CheckResult:
    count = p.photo_count
    if count == 0:
        return (
            False, "missing", "No photos",
            "Add high-quality photos of your business, products, and services",
        )
    if count < 5:
        return (
            True, "needs_more", f"{count} photos",
            "Add more photos (aim for 10+ photos) to showcase your business better",
        )
    return True, "complete", f"{count} photos", None


def _check_reviews(p: BusinessProfile, keywords: Sequence[str]) -> CheckResult:
    count = p.review_count or 0
    if count == 0:
        return (
            False, "missing", "No reviews",
            "Start collecting customer reviews - they're crucial for local search rankings",
        )
    value = f"{count} reviews ({p.rating}/5.0)"
    if count < 10:
        return True, "needs_more", value, "Focus on getting more reviews (aim for 10+ reviews minimum)"
    if count < 50:
        return True, "good", value, "Continue collecting reviews to build stronger social proof"
    return True, "excellent", value, None


def _check_rating(p: BusinessProfile, keywords: Sequence[str]) -> CheckResult:
    rating = p.rating or 0
    if rating == 0:
        return False, "missing", "No rating", "Focus on getting your first reviews"
    value = f"{rating}/5.0 average rating"
    if rating < 3.5:
        return False, "poor", value, "Critical: Address service issues causing low ratings"
    if rating < 4.0:
        return False, "fair", value, "Work on improving customer experience to boost rating"
    if rating < 4.5:
        return True, "good", value, None
    return True, "excellent", value, None


_CHECKS: dict[str, Callable[[BusinessProfile, Sequence[str]], CheckResult]] = {
    "business_name": _check_name,
    "description": _check_description,
    "keywords_in_description": _check_description_keywords,
    "business_hours": _check_hours,
    "phone_number": _check_phone,
    "website": _check_website,
    "categories": _check_categories,
    "categories_match_keywords": _check_categories_keywords,
    "price_range": _check_price,
    "service_options": _check_service_options,
    "social_media_links": _check_social,
    "photos": _check_photos,
    "reviews": _check_reviews,
    "review_quality": _check_rating,
}


def _overall_status(completion: int) -> str:
    if completion >= 90:
        return "excellent"
    if completion >= 80:
        return "good"
    if completion >= 60:
        return "fair"
    return "needs_improvement"


def evaluate_profile_checklist(profile: BusinessProfile,
                               keywords: Sequence[str] = ()) -> dict[str, Any]:
    """Score a business profile against the completeness checklist.

    Args:
        profile: Resolved business profile.
        keywords: Target keywords used by the keyword-match items.

    Returns:
        Dict with ``overall_score``, ``max_score``, ``completion_percentage``,
        ``overall_status``, per-item ``components``, ``recommendations`` and
        a ``summary`` of completed, missing and needs-work items.
    """
    keywords = list(keywords)
    components: dict[str, dict[str, Any]] = {}
    recommendations: list[dict[str, str]] = []
    score = 0

    for item in PROFILE_CHECKLIST_ITEMS:
        passed, status, value, recommendation = _CHECKS[item["key"]](profile, keywords)
        earned = item["points"] if passed else 0
        score += earned
        components[item["key"]] = {
            "label": item["label"],
            "points_possible": item["points"],
            "points_earned": earned,
            "status": status,
            "value": value,
            "recommendation": recommendation,
        }
        if recommendation:
            recommendations.append({
                "component": item["key"],
                "recommendation": recommendation,
                "priority": "high" if item["points"] >= 2 else "medium",
            })

    completion = round_half_up((score / MAX_CHECKLIST_SCORE) * 100)
    statuses = [c["status"] for c in components.values()]
    return {
        "title": "Local Listings",
        "subtitle": "Make your business easy to find",
        "overall_score": score,
        "max_score": MAX_CHECKLIST_SCORE,
        "completion_percentage": completion,
        "overall_status": _overall_status(completion),
        "components": components,
        "recommendations": recommendations,
        "summary": {
            "completed_items": sum(1 for s in statuses if s in _COMPLETED),
            "total_items": len(statuses),
            "missing_items": sum(1 for s in statuses if s == "missing"),
            "needs_optimization": sum(1 for s in statuses if s in _NEEDS_WORK),
        },
    }
