"""Async Notion API client that materializes page block trees."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from ..config import NotionConfig, RetryConfig
from ..errors import NotionAPIError
from ..models import Block, BlockType
from ..retry import with_retry
from .page_id import format_page_id

logger = structlog.get_logger()

UNTITLED = "Untitled"

# Child pages and databases are separate documents; their content is not inlined.
_NO_DESCEND = frozenset({BlockType.CHILD_PAGE.value, BlockType.CHILD_DATABASE.value})


class TransientNotionError(NotionAPIError):
    """A 429 or 5xx response, retried with backoff."""


class NotionClient:
    """Reads pages and block children from the Notion REST API.

    Requests are bounded by ``config.max_concurrent_requests`` and
    retried on rate limiting and server errors.
    """

    def __init__(
        self,
        config: NotionConfig,
        api_key: str,
        retry_config: RetryConfig | None = None,
    ) -> None:
        self._config = config
        self._api_key = api_key
        self._client: httpx.AsyncClient | None = None
        self._semaphore = asyncio.Semaphore(max(config.max_concurrent_requests, 1))
        self._get = with_retry(
            retry_config or RetryConfig(),
            retryable_exceptions=(TransientNotionError, httpx.TransportError),
        )(self._get_once)

    async def start(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=httpx.Timeout(self._config.timeout_seconds),
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Notion-Version": self._config.api_version,
            },
        )
        logger.info("notion_client_started", base_url=self._config.base_url)

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            logger.info("notion_client_stopped")

    async def __aenter__(self) -> NotionClient:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _get_once(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        if self._client is None:
            raise AssertionError("Client not started")

        async with self._semaphore:
            response = await self._client.get(path, params=params)

        if response.status_code == 429 or response.status_code >= 500:
            logger.warning("notion_request_retryable", path=path, status_code=response.status_code)
            raise TransientNotionError(response.status_code, _error_message(response))
        if response.is_error:
            raise NotionAPIError(response.status_code, _error_message(response))
        return response.json()

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def retrieve_page_title(self, page_id: str) -> str:
        """Title of the page, or ``"Untitled"`` if it cannot be read."""
        try:
            page = await self._get(f"/pages/{format_page_id(page_id)}")
        except (NotionAPIError, httpx.HTTPError) as exc:
            logger.warning("page_title_unavailable", page_id=page_id, error=str(exc))
            return UNTITLED
        return page_title(page)

    async def validate_api_key(self) -> bool:
        try:
            await self._get("/users/me")
        except (NotionAPIError, httpx.HTTPError):
            return False
        return True

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    async def list_children(self, block_id: str) -> list[dict[str, Any]]:
        """All direct children of a block, following pagination cursors."""
        results: list[dict[str, Any]] = []
        cursor: str | None = None
        while True:
            params: dict[str, Any] = {"page_size": self._config.page_size}
            if cursor:
                params["start_cursor"] = cursor
            payload = await self._get(f"/blocks/{block_id}/children", params=params)
            results.extend(payload.get("results") or [])
            cursor = payload.get("next_cursor")
            if not payload.get("has_more") or not cursor:
                break
        logger.debug("notion_children_fetched", block_id=block_id, count=len(results))
        return results

    async def fetch_block_tree(self, block_id: str) -> list[Block]:
        """Fetch the children of *block_id* recursively.

        Subtrees of sibling blocks are fetched concurrently; the returned
        list keeps source order.  ``child_page`` / ``child_database``
        blocks are not descended into.
        """
        raw_blocks = await self.list_children(block_id)

        tasks: dict[int, asyncio.Task[list[Block]]] = {}
        try:
            async with asyncio.TaskGroup() as tg:
                for index, raw in enumerate(raw_blocks):
                    if raw.get("has_children") and raw.get("type") not in _NO_DESCEND:
                        tasks[index] = tg.create_task(self.fetch_block_tree(raw["id"]))
        except ExceptionGroup as group:
            raise _first_leaf(group) from None

        return [
            Block.model_validate({**raw, "children": tasks[index].result() if index in tasks else []})
            for index, raw in enumerate(raw_blocks)
        ]


def page_title(page: dict[str, Any]) -> str:
    properties = page.get("properties") or {}
    candidates = [properties.get("title"), properties.get("Name")]
    candidates.extend(p for p in properties.values() if isinstance(p, dict) and p.get("type") == "title")
    for prop in candidates:
        if isinstance(prop, dict) and isinstance(prop.get("title"), list):
            title = "".join(part.get("plain_text", "") for part in prop["title"])
            return title or UNTITLED
    return UNTITLED


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return body.get("message") or body.get("code") or ""
    return ""


def _first_leaf(group: BaseExceptionGroup) -> BaseException:
    error: BaseException = group
    while isinstance(error, BaseExceptionGroup):
        error = error.exceptions[0]
    return error
