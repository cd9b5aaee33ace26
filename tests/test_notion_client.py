"""Tests for pagecraft.notion.client."""

from __future__ import annotations

import httpx
import pytest
import respx

from pagecraft.config import NotionConfig, RetryConfig
from pagecraft.errors import NotionAPIError
from pagecraft.models import BlockType
from pagecraft.notion.client import NotionClient, TransientNotionError, page_title
from tests.conftest import NOTION_API, make_raw_block, make_run

PAGE_ID = "0123456789abcdef0123456789abcdef"
DASHED_ID = "01234567-89ab-cdef-0123-456789abcdef"
API_KEY = "ntn_test_key"


def children_url(block_id: str) -> str:
    return f"{NOTION_API}/blocks/{block_id}/children"


def listing(*blocks: dict, next_cursor: str | None = None) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "object": "list",
            "results": list(blocks),
            "has_more": next_cursor is not None,
            "next_cursor": next_cursor,
        },
    )


@pytest.fixture
def client(notion_config: NotionConfig, retry_config: RetryConfig) -> NotionClient:
    return NotionClient(notion_config, API_KEY, retry_config)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_and_stop(self, client: NotionClient):
        await client.start()
        assert client._client is not None
        await client.stop()

    @pytest.mark.asyncio
    async def test_stop_when_not_started(self, client: NotionClient):
        await client.stop()  # should not raise

    @pytest.mark.asyncio
    async def test_request_before_start_fails(self, client: NotionClient):
        with pytest.raises(AssertionError):
            await client.list_children(PAGE_ID)


class TestListChildren:
    @pytest.mark.asyncio
    @respx.mock
    async def test_sends_auth_and_version_headers(self, client: NotionClient, notion_config: NotionConfig):
        route = respx.get(children_url(PAGE_ID)).mock(return_value=listing())

        async with client:
            await client.list_children(PAGE_ID)

        request = route.calls[0].request
        assert request.headers["authorization"] == f"Bearer {API_KEY}"
        assert request.headers["notion-version"] == notion_config.api_version
        assert request.url.params["page_size"] == "2"

    @pytest.mark.asyncio
    @respx.mock
    async def test_follows_cursors(self, client: NotionClient):
        route = respx.get(children_url(PAGE_ID)).mock(
            side_effect=[
                listing(make_raw_block("paragraph", "b1"), make_raw_block("paragraph", "b2"), next_cursor="c2"),
                listing(make_raw_block("divider", "b3")),
            ]
        )

        async with client:
            results = await client.list_children(PAGE_ID)

        assert [r["id"] for r in results] == ["b1", "b2", "b3"]
        assert route.call_count == 2
        assert "start_cursor" not in route.calls[0].request.url.params
        assert route.calls[1].request.url.params["start_cursor"] == "c2"

    @pytest.mark.asyncio
    @respx.mock
    async def test_retries_rate_limit(self, client: NotionClient):
        route = respx.get(children_url(PAGE_ID)).mock(
            side_effect=[
                httpx.Response(429, json={"code": "rate_limited", "message": "slow down"}),
                listing(make_raw_block("paragraph", "b1")),
            ]
        )

        async with client:
            results = await client.list_children(PAGE_ID)

        assert len(results) == 1
        assert route.call_count == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_server_errors_exhaust_retries(self, client: NotionClient):
        route = respx.get(children_url(PAGE_ID)).respond(503, text="unavailable")

        async with client:
            with pytest.raises(TransientNotionError) as exc_info:
                await client.list_children(PAGE_ID)

        assert exc_info.value.status_code == 503
        assert route.call_count == 3

    @pytest.mark.asyncio
    @respx.mock
    async def test_not_found_is_not_retried(self, client: NotionClient):
        route = respx.get(children_url(PAGE_ID)).respond(
            404, json={"object": "error", "code": "object_not_found", "message": "Could not find block"}
        )

        async with client:
            with pytest.raises(NotionAPIError, match="Page not found") as exc_info:
                await client.list_children(PAGE_ID)

        assert exc_info.value.status_code == 404
        assert exc_info.value.detail == "Could not find block"
        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_unknown_status_message(self, client: NotionClient):
        respx.get(children_url(PAGE_ID)).respond(400, json={"message": "bad cursor"})

        async with client:
            with pytest.raises(NotionAPIError, match=r"Notion API error \(400\): bad cursor"):
                await client.list_children(PAGE_ID)


class TestFetchBlockTree:
    @pytest.mark.asyncio
    @respx.mock
    async def test_materializes_children_in_order(self, client: NotionClient):
        respx.get(children_url(PAGE_ID)).mock(
            return_value=listing(
                make_raw_block("paragraph", "p1", rich_text=[make_run("first")]),
                make_raw_block("toggle", "t1", has_children=True, rich_text=[make_run("toggle")]),
                make_raw_block("child_page", "cp", has_children=True, title="Sub page"),
                make_raw_block("bulleted_list_item", "li", has_children=True, rich_text=[make_run("item")]),
            )
        )
        respx.get(children_url("t1")).mock(
            return_value=listing(make_raw_block("paragraph", "t1-p", rich_text=[make_run("inside")]))
        )
        respx.get(children_url("li")).mock(
            return_value=listing(make_raw_block("bulleted_list_item", "li-2", has_children=True))
        )
        respx.get(children_url("li-2")).mock(return_value=listing(make_raw_block("divider", "deep")))

        async with client:
            blocks = await client.fetch_block_tree(PAGE_ID)

        assert [b.id for b in blocks] == ["p1", "t1", "cp", "li"]
        assert blocks[0].kind is BlockType.PARAGRAPH
        assert blocks[0].rich_text()[0].plain_text == "first"
        assert [c.id for c in blocks[1].children] == ["t1-p"]
        assert blocks[2].children == []
        assert blocks[3].children[0].children[0].kind is BlockType.DIVIDER

    @pytest.mark.asyncio
    @respx.mock
    async def test_nested_failure_surfaces_api_error(self, client: NotionClient):
        respx.get(children_url(PAGE_ID)).mock(
            return_value=listing(make_raw_block("toggle", "t1", has_children=True))
        )
        respx.get(children_url("t1")).respond(403, json={"message": "restricted"})

        async with client:
            with pytest.raises(NotionAPIError) as exc_info:
                await client.fetch_block_tree(PAGE_ID)

        assert exc_info.value.status_code == 403


class TestPages:
    @pytest.mark.asyncio
    @respx.mock
    async def test_retrieve_page_title(self, client: NotionClient):
        route = respx.get(f"{NOTION_API}/pages/{DASHED_ID}").respond(
            200,
            json={
                "object": "page",
                "properties": {"title": {"type": "title", "title": [{"plain_text": "My "}, {"plain_text": "Page"}]}},
            },
        )

        async with client:
            assert await client.retrieve_page_title(PAGE_ID) == "My Page"
        assert route.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_title_falls_back_to_untitled(self, client: NotionClient):
        respx.get(f"{NOTION_API}/pages/{DASHED_ID}").respond(404)

        async with client:
            assert await client.retrieve_page_title(PAGE_ID) == "Untitled"

    @pytest.mark.asyncio
    @respx.mock
    async def test_validate_api_key(self, client: NotionClient):
        respx.get(f"{NOTION_API}/users/me").mock(
            side_effect=[httpx.Response(200, json={"object": "user"}), httpx.Response(401)]
        )

        async with client:
            assert await client.validate_api_key() is True
            assert await client.validate_api_key() is False


class TestPageTitle:
    def test_database_item_name_property(self):
        page = {"properties": {"Name": {"type": "title", "title": [{"plain_text": "Row"}]}}}
        assert page_title(page) == "Row"

    def test_any_title_property(self):
        page = {"properties": {"Task": {"type": "title", "title": [{"plain_text": "Ship it"}]}}}
        assert page_title(page) == "Ship it"

    def test_empty_title(self):
        assert page_title({"properties": {"title": {"type": "title", "title": []}}}) == "Untitled"
        assert page_title({}) == "Untitled"
