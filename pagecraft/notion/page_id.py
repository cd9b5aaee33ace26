"""Resolve a Notion page URL (or bare id) to a page id."""

from __future__ import annotations

import re

from ..errors import InvalidCredentialsError, InvalidSourceError

API_KEY_PREFIXES = ("secret_", "ntn_")

_BARE_ID = re.compile(r"^[a-f0-9]{32}$", re.IGNORECASE)
_ID_PATTERNS = (
    # .../Page-Title-<32 hex> or .../<32 hex>, optionally followed by a query
    re.compile(r"([a-f0-9]{32})(?:[?#]|$)", re.IGNORECASE),
    # dashed UUID as a path segment
    re.compile(r"/([a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12})", re.IGNORECASE),
    # dashed UUID anywhere
    re.compile(r"([a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12})", re.IGNORECASE),
)


def extract_page_id(url_or_id: str) -> str:
    """Return the 32-character page id (no dashes).

    Raises :class:`InvalidSourceError` when no id can be found; callers
    do this before any request is made.
    """
    candidate = url_or_id.strip()
    compact = candidate.replace("-", "")
    if _BARE_ID.match(compact):
        return compact.lower()

    for pattern in _ID_PATTERNS:
        match = pattern.search(candidate)
        if match:
            return match.group(1).replace("-", "").lower()

    raise InvalidSourceError(
        "Could not extract page ID from the provided URL. "
        "Please provide a valid Notion page URL or page ID."
    )


def format_page_id(page_id: str) -> str:
    """Dashed 8-4-4-4-12 form used in API paths."""
    p = page_id.replace("-", "")
    return f"{p[:8]}-{p[8:12]}-{p[12:16]}-{p[16:20]}-{p[20:]}"


def check_api_key_format(api_key: str | None) -> str:
    """Validate the integration token prefix; returns the stripped key."""
    key = (api_key or "").strip()
    if not key:
        raise InvalidCredentialsError("Notion API key is required")
    if not key.startswith(API_KEY_PREFIXES):
        raise InvalidCredentialsError(
            "Invalid Notion API key format. Key should start with 'secret_' or 'ntn_'"
        )
    return key
