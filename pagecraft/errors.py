"""Exceptions raised at the conversion boundary.

Failures local to one block or one image never surface here: the
transpiler and image resolver log them and degrade.  These exceptions are
for conditions that make the whole request meaningless.
"""

from __future__ import annotations


class PagecraftError(Exception):
    """Base exception for pagecraft."""


class InvalidSourceError(PagecraftError):
    """The source identifier (e.g. a Notion page URL) cannot be resolved."""


class InvalidCredentialsError(PagecraftError):
    """The supplied API key is malformed or rejected by the remote API."""


class EmptyContentError(PagecraftError):
    """No content was supplied for the selected conversion mode."""


class ContentTooLargeError(PagecraftError):
    """The input exceeds the configured maximum size."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        label = f"{limit // 1_000_000}MB" if limit >= 1_000_000 else f"{limit} characters"
        super().__init__(f"Content exceeds maximum size ({label})")


class NotionAPIError(PagecraftError):
    """The Notion API returned an error response."""

    _MESSAGES = {
        401: (
            "Invalid API key or the integration doesn't have access to this page. "
            "Make sure you've shared the page with your integration."
        ),
        403: (
            "The integration doesn't have access to this page. "
            "Make sure you've shared the page with your integration."
        ),
        404: (
            "Page not found. Make sure the page exists and you've shared it "
            "with your integration."
        ),
        429: "Rate limited by Notion API. Please wait a moment and try again.",
    }

    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        message = self._MESSAGES.get(status_code)
        if message is None:
            message = f"Notion API error ({status_code})"
            if detail:
                message = f"{message}: {detail}"
        super().__init__(message)


class RenderError(PagecraftError):
    """The rendering engine failed to produce a PDF."""


class RenderTimeoutError(RenderError):
    """Rendering exceeded its wall-clock budget."""

    def __init__(self, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__("PDF generation timed out. Try with a smaller document.")
