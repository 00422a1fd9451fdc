"""Input validation for analysis requests.

Every validator returns ``(is_valid, error_message)``; the message is empty
on success.
"""

import re
from typing import Any, Optional

PLACE_ID_PATTERN = re.compile(r"^ChIJ[A-Za-z0-9_-]+$")

MAX_BUSINESS_NAME_LENGTH = 100
MAX_LOCATION_LENGTH = 200
MAX_INDUSTRY_LENGTH = 50
MAX_KEYWORDS = 20
MAX_KEYWORD_LENGTH = 50


def is_valid_place_id(place_id: Optional[str]) -> bool:
    """Return True when *place_id* looks like a Google place identifier."""
    return bool(place_id) and bool(PLACE_ID_PATTERN.match(place_id))


def _check_length(value: Any, label: str, max_length: int) -> tuple[bool, str]:
    if not isinstance(value, str):
        return False, f"{label} must be a string."
    stripped = value.strip()
    if not stripped:
        return False, f"{label} must not be empty."
    if len(stripped) > max_length:
        return False, f"{label} must be at most {max_length} characters."
    return True, ""


def validate_keywords(keywords: Any) -> tuple[bool, str]:
    """Validate an optional keyword list.

    Args:
        keywords: ``None`` or a list of short strings.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if keywords is None:
        return True, ""
    if not isinstance(keywords, (list, tuple)):
        return False, "Keywords must be a list of strings."
    if len(keywords) > MAX_KEYWORDS:
        return False, f"At most {MAX_KEYWORDS} keywords are allowed."
    for keyword in keywords:
        if not isinstance(keyword, str):
            return False, "Keywords must be a list of strings."
        if len(keyword) > MAX_KEYWORD_LENGTH:
            return False, (
                f"Keyword {keyword[:20]!r}... exceeds {MAX_KEYWORD_LENGTH} characters."
            )
    return True, ""


def validate_analysis_request(
    place_id: Optional[str] = None,
    business_name: Optional[str] = None,
    location: Optional[str] = None,
    keywords: Any = None,
    industry: Optional[str] = None,
) -> tuple[bool, str]:
    """Validate the raw fields of an analysis request.

    Either a well-formed *place_id* or both *business_name* and *location*
    must be supplied.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if place_id:
        if not is_valid_place_id(place_id):
            return False, "Invalid place_id format."
    elif business_name and location:
        ok, msg = _check_length(business_name, "Business name", MAX_BUSINESS_NAME_LENGTH)
        if not ok:
            return ok, msg
        ok, msg = _check_length(location, "Location", MAX_LOCATION_LENGTH)
        if not ok:
            return ok, msg
    else:
        return False, "Either place_id or both business_name and location must be provided"

    ok, msg = validate_keywords(keywords)
    if not ok:
        return ok, msg

    if industry is not None:
        ok, msg = _check_length(industry, "Industry", MAX_INDUSTRY_LENGTH)
        if not ok:
            return ok, msg
    return True, ""
