"""General-purpose helpers shared by the scorers and collaborators."""

import math
from datetime import datetime, timezone
from typing import Optional


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up.

    Python's built-in ``round`` uses banker's rounding, which would turn a
    2.5 alt-text bonus into 2.  Every score in the engine goes through here.

    Examples:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(91.6)
        92
    """
    return int(math.floor(value + 0.5))


def round_to(value: float, digits: int = 1) -> float:
    """Half-up rounding to a fixed number of decimals."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def extract_city_from_address(address: Optional[str]) -> str:
    """Pull a city out of a formatted address.

    With two or more comma-separated parts the second-to-last part is used
    (``"123 Main St, Austin, TX"`` -> ``"Austin"``); otherwise the first word.

    Args:
        address: Formatted address or free-form location.

    Returns:
        City string, empty when nothing usable is present.
    """
    if not address:
        return ""
    parts = address.split(",")
    if len(parts) >= 2:
        return parts[-2].strip()
    words = address.split()
    return words[0] if words else ""


def normalize_website(url: Optional[str]) -> Optional[str]:
    """Prefix ``https://`` onto a website URL that has no scheme.

    Explicit ``http://`` URLs are left alone. Returns ``None`` for empty
    input so "no website" stays falsy.
    """
    if not url or not url.strip():
        return None
    url = url.strip()
    if not url.startswith("http"):
        return "https://" + url
    return url


def contains_ci(haystack: Optional[str], needle: Optional[str]) -> bool:
    """Case-insensitive substring test that treats empty needles as no match."""
    if not haystack or not needle:
        return False
    return needle.lower() in haystack.lower()


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()
