"""Google Places API client: business lookup and profile details."""

import logging
import os
from typing import Any, Optional

import httpx

from business_analysis.errors import ProfileNotFoundError
from business_analysis.modules.analysis.entities import (
    BusinessProfile,
    BusinessStatus,
    Photo,
    ResolvedProfile,
    Review,
)
from business_analysis.utils.helpers import normalize_website
from business_analysis.utils.rate_limiter import RateLimiter
from business_analysis.utils.validators import is_valid_place_id

logger = logging.getLogger(__name__)

PLACES_BASE_URL = "https://maps.googleapis.com/maps/api/place"

SERVICE_OPTION_FIELDS = [
    "delivery",
    "takeout",
    "dine_in",
    "curbside_pickup",
    "serves_breakfast",
    "serves_lunch",
    "serves_dinner",
    "serves_brunch",
    "serves_beer",
    "serves_wine",
    "serves_vegetarian_food",
]

DETAIL_FIELDS = [
    "place_id",
    "name",
    "formatted_address",
    "formatted_phone_number",
    "international_phone_number",
    "website",
    "rating",
    "user_ratings_total",
    "price_level",
    "types",
    "opening_hours",
    "photos",
    "reviews",
    "business_status",
    "editorial_summary",
    "url",
] + SERVICE_OPTION_FIELDS


class GooglePlacesClient:
    """Resolve businesses through the Google Places Text Search and Details APIs.

    Implements the ``ProfileResolver`` protocol consumed by the orchestrator.

    Usage::

        places = GooglePlacesClient(api_key="...")
        resolved = await places.search("Joe's Pizza", "Austin, TX")
        profile = await places.resolve_by_place_id(resolved.place_id)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        requests_per_minute: int = 100,
        base_url: str = PLACES_BASE_URL,
    ):
        self._api_key = api_key or os.getenv("GOOGLE_PLACES_API_KEY", "")
        self._timeout = timeout
        self._base_url = base_url.rstrip("/")
        self._limiter = RateLimiter(requests_per_minute, 60.0, name="places")

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # ProfileResolver
    # ------------------------------------------------------------------

    async def search(self, name: str, location: str) -> ResolvedProfile:
        """Find the most relevant business for *name* in *location*.

        Raises:
            ProfileNotFoundError: If the search returns nothing.
            RuntimeError: If no API key is configured.
        """
        query = f"{name} {location}".strip()
        logger.info("Searching Places for %r", query)
        data = await self._get("textsearch/json", {
            "query": query,
            "type": "establishment",
        })
        results = data.get("results") or []
        if not results:
            raise ProfileNotFoundError("No businesses found matching the search criteria")

        candidate = results[0]
        place_id = candidate["place_id"]
        logger.info(
            "Found business candidate: %s (place_id=%s)",
            candidate.get("name"), place_id,
        )
        profile = await self.resolve_by_place_id(place_id)
        return ResolvedProfile(profile=profile, place_id=place_id)

    async def resolve_by_place_id(self, place_id: str) -> BusinessProfile:
        """Fetch and parse full details for a place.

        Raises:
            ProfileNotFoundError: If the place id is unknown.
            RuntimeError: If no API key is configured.
        """
        if not is_valid_place_id(place_id):
            raise ProfileNotFoundError(f"Invalid place ID: {place_id!r}")
        data = await self._get("details/json", {
            "place_id": place_id,
            "fields": ",".join(DETAIL_FIELDS),
            "reviews_sort": "newest",
        })
        result = data.get("result")
        if not result:
            raise ProfileNotFoundError("No business details found for the given place ID")

        profile = parse_place_details(result)
        logger.info(
            "Business details retrieved: %s (website=%s, rating=%s, reviews=%d)",
            profile.name, profile.website, profile.rating, profile.review_count,
        )
        return profile

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def photo_url(self, photo_reference: str, max_width: int = 400) -> Optional[str]:
        """Build a viewable URL for a photo reference, or None without a key."""
        if not photo_reference or not self._api_key:
            return None
        return (
            f"{self._base_url}/photo?photoreference={photo_reference}"
            f"&maxwidth={max_width}&key={self._api_key}"
        )

    async def _get(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        if not self._api_key:
            raise RuntimeError("Google Places API key is not configured")

        params = {**params, "key": self._api_key}
        async with self._limiter:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(f"{self._base_url}/{endpoint}", params=params)
                response.raise_for_status()
                data = response.json()

        status = data.get("status")
        if status in ("ZERO_RESULTS", "NOT_FOUND", "INVALID_REQUEST"):
            raise ProfileNotFoundError(f"Google Places API returned {status}")
        if status != "OK":
            raise RuntimeError(f"Google Places API error: {status}")
        return data


def parse_place_details(raw: dict[str, Any]) -> BusinessProfile:
    """Convert a Places Details ``result`` object into a :class:`BusinessProfile`."""
    hours = raw.get("opening_hours")
    opening_hours = None
    if hours:
        opening_hours = {
            "open_now": hours.get("open_now"),
            "periods": hours.get("periods"),
            "weekday_text": hours.get("weekday_text"),
        }

    photos = tuple(
        Photo(
            photo_reference=p.get("photo_reference", ""),
            width=p.get("width"),
            height=p.get("height"),
        )
        for p in raw.get("photos") or []
    )
    reviews = tuple(
        Review(
            author_name=r.get("author_name", ""),
            rating=int(r.get("rating") or 0),
            text=r.get("text") or "",
            relative_time_description=r.get("relative_time_description") or "",
        )
        for r in raw.get("reviews") or []
    )
    service_options = {
        key: bool(raw[key]) for key in SERVICE_OPTION_FIELDS if key in raw
    }
    summary = (raw.get("editorial_summary") or {}).get("overview")

    return BusinessProfile(
        name=raw.get("name", ""),
        place_id=raw.get("place_id", ""),
        formatted_address=raw.get("formatted_address") or "",
        phone=raw.get("formatted_phone_number") or raw.get("international_phone_number") or "",
        website=normalize_website(raw.get("website")),
        rating=raw.get("rating"),
        review_count=raw.get("user_ratings_total") or len(reviews),
        types=tuple(raw.get("types") or ()),
        opening_hours=opening_hours,
        photos=photos,
        business_status=BusinessStatus.parse(raw.get("business_status")),
        reviews=reviews,
        price_level=raw.get("price_level"),
        description=summary or None,
        service_options=service_options,
    )
