"""Shared test fixtures for the pagecraft test suite."""

from __future__ import annotations

from typing import Any

import pytest

from pagecraft.config import (
    ImageConfig,
    NotionConfig,
    PagecraftConfig,
    RenderConfig,
    RetryConfig,
)
from pagecraft.models import Block

NOTION_API = "https://notion.test/v1"


def make_run(text: str, *, href: str | None = None, **annotations: Any) -> dict[str, Any]:
    """A rich-text object in the shape the Notion API returns."""
    return {
        "type": "text",
        "text": {"content": text, "link": {"url": href} if href else None},
        "annotations": {"color": "default", **annotations},
        "plain_text": text,
        "href": href,
    }


def make_block(
    block_type: str,
    text: str | None = None,
    *,
    block_id: str = "block-1",
    children: list[Block] | None = None,
    **payload: Any,
) -> Block:
    """Build a materialized block; *text* becomes a single plain rich-text run."""
    if text is not None:
        payload.setdefault("rich_text", [make_run(text)])
    kids = children or []
    return Block(
        id=block_id,
        type=block_type,
        payload=payload,
        has_children=bool(kids),
        children=kids,
    )


def make_raw_block(block_type: str, block_id: str, *, has_children: bool = False, **payload: Any) -> dict:
    """A block object as returned by ``GET /blocks/{id}/children``."""
    return {
        "object": "block",
        "id": block_id,
        "type": block_type,
        "has_children": has_children,
        block_type: payload,
    }


def make_table(rows: list[list[str]], *, width: int | None = None, **flags: Any) -> Block:
    row_blocks = [
        make_block("table_row", block_id=f"row-{i}", cells=[[make_run(cell)] if cell else [] for cell in row])
        for i, row in enumerate(rows)
    ]
    return make_block(
        "table",
        block_id="table-1",
        children=row_blocks,
        table_width=width if width is not None else max((len(r) for r in rows), default=1),
        **flags,
    )


@pytest.fixture
def retry_config() -> RetryConfig:
    return RetryConfig(
        max_attempts=3,
        initial_wait_seconds=0.01,
        max_wait_seconds=0.05,
        multiplier=2.0,
    )


@pytest.fixture
def notion_config() -> NotionConfig:
    return NotionConfig(base_url=NOTION_API, page_size=2, timeout_seconds=5.0)


@pytest.fixture
def image_config() -> ImageConfig:
    return ImageConfig(timeout_seconds=2.0, max_concurrent_fetches=2)


@pytest.fixture
def render_config() -> RenderConfig:
    return RenderConfig(timeout_seconds=5.0, font_wait_seconds=0.1, settle_seconds=0.0)


@pytest.fixture
def pagecraft_config(
    notion_config: NotionConfig,
    image_config: ImageConfig,
    render_config: RenderConfig,
    retry_config: RetryConfig,
) -> PagecraftConfig:
    return PagecraftConfig(
        notion=notion_config,
        images=image_config,
        render=render_config,
        retry=retry_config,
    )
