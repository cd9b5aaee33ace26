"""Notion page retrieval."""

from .client import NotionClient, TransientNotionError, page_title
from .page_id import check_api_key_format, extract_page_id, format_page_id

__all__ = [
    "NotionClient",
    "TransientNotionError",
    "check_api_key_format",
    "extract_page_id",
    "format_page_id",
    "page_title",
]
