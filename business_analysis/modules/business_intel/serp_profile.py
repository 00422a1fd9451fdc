"""Profile enrichment from the Google results page (knowledge graph) via SerpAPI."""

import logging
import re
from typing import Any, Optional

import httpx

from business_analysis.integrations.serpapi_client import SerpApiClient, SerpApiError
from business_analysis.modules.analysis.entities import ProfileEnrichment
from business_analysis.modules.rank_tracker.serp_analyzer import to_supported_location

logger = logging.getLogger(__name__)

_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def _option_key(label: str) -> str:
    """'Dine-in' -> 'dine_in', 'Curbside pickup' -> 'curbside_pickup'."""
    return re.sub(r"[^a-z0-9]+", "_", label.strip().lower()).strip("_")


def normalize_service_options(raw: Any) -> dict[str, bool]:
    """Accept SerpAPI's dict form (``{"dine_in": true}``) or list form (``["Dine-in"]``)."""
    if isinstance(raw, dict):
        return {_option_key(str(k)): bool(v) for k, v in raw.items() if str(k).strip()}
    if isinstance(raw, (list, tuple)):
        return {_option_key(str(item)): True for item in raw if str(item).strip()}
    return {}


def hours_to_weekday_text(raw: Any) -> tuple[str, ...]:
    """Turn knowledge-graph hours into Places-style ``weekday_text`` lines.

    Examples:
        >>> hours_to_weekday_text({"monday": {"opens": "11 AM", "closes": "10 PM"}})
        ('Monday: 11 AM - 10 PM',)
    """
    if not isinstance(raw, dict):
        return ()
    lines = []
    for day in _WEEKDAYS:
        value = raw.get(day)
        if value is None:
            continue
        if isinstance(value, dict):
            opens, closes = value.get("opens"), value.get("closes")
            text = f"{opens} - {closes}" if opens and closes else (opens or closes or "")
        else:
            text = str(value)
        if text:
            lines.append(f"{day.capitalize()}: {text}")
    return tuple(lines)


def _matches(result: dict[str, Any], business_name: str) -> bool:
    title = (result or {}).get("title") or ""
    return bool(title) and business_name.lower() in title.lower()


def extract_profile_from_serp(data: dict[str, Any], business_name: str) -> ProfileEnrichment:
    """Collect description, social links, service options and hours from one SERP.

    The knowledge graph wins; the matching local result, the answer box and
    the matching organic snippet only fill what is still missing.
    """
    description: Optional[str] = None
    social_links: dict[str, str] = {}
    service_options: dict[str, bool] = {}
    weekday_text: tuple[str, ...] = ()

    kg = data.get("knowledge_graph") or {}
    if kg:
        description = kg.get("description") or None
        service_options.update(normalize_service_options(kg.get("service_options")))
        weekday_text = hours_to_weekday_text(kg.get("hours"))
        for entry in kg.get("profiles") or []:
            name, link = entry.get("name"), entry.get("link")
            if name and link:
                social_links[name.lower()] = link

    local = next(
        (r for r in data.get("local_results") or [] if _matches(r, business_name)), None
    )
    if local:
        for key, value in normalize_service_options(local.get("service_options")).items():
            service_options.setdefault(key, value)
        if not weekday_text:
            weekday_text = hours_to_weekday_text(local.get("hours"))
        if not description:
            description = local.get("description") or None

    if not description:
        description = (data.get("answer_box") or {}).get("answer") or None

    if not description:
        organic = next(
            (r for r in data.get("organic_results") or [] if _matches(r, business_name)), None
        )
        if organic:
            description = organic.get("snippet") or None

    return ProfileEnrichment(
        description=description,
        social_links=social_links,
        service_options=service_options,
        weekday_text=weekday_text,
    )


class SerpProfileEnricher:
    """``ProfileEnricher`` backed by a single SerpAPI search for name + address.

    Usage::

        enricher = SerpProfileEnricher(SerpApiClient())
        extra = await enricher.enrich("Joe's Pizza", "123 Main St, Austin, TX 78701, USA")
        profile = extra.fill(profile) if extra else profile
    """

    def __init__(self, client: SerpApiClient):
        self._client = client

    async def enrich(self, name: str, address: str) -> Optional[ProfileEnrichment]:
        if not self._client.is_configured:
            logger.info("SerpAPI not configured; skipping profile enrichment")
            return None

        try:
            data = await self._client.search(
                f"{name} {address}".strip(), location=to_supported_location(address)
            )
        except (SerpApiError, httpx.HTTPError, RuntimeError) as exc:
            logger.warning("Profile enrichment from SerpAPI failed: %s", exc)
            return None

        enrichment = extract_profile_from_serp(data, name)
        logger.info(
            "Profile enrichment for %s: description=%s social=%d options=%d hours=%d",
            name, bool(enrichment.description), len(enrichment.social_links),
            len(enrichment.service_options), len(enrichment.weekday_text),
        )
        return enrichment
