"""Tests for pagecraft.images."""

from __future__ import annotations

import base64

import httpx
import pytest
import respx

from pagecraft.config import ImageConfig
from pagecraft.images import (
    ImageAliasMap,
    ImageResolver,
    embed_images_in_html,
    embed_images_in_markdown,
    image_urls,
    mime_type_for,
    to_data_uri,
)
from pagecraft.transpiler import BlockTranspiler
from tests.conftest import make_block

PNG = b"\x89PNG\r\n\x1a\nfake"


def image_block(url: str, block_id: str = "img-1"):
    return make_block("image", block_id=block_id, type="external", external={"url": url})


class TestHelpers:
    def test_to_data_uri(self):
        assert to_data_uri(b"abc", "image/gif") == "data:image/gif;base64,YWJj"

    def test_mime_type_for(self):
        assert mime_type_for("photos/cat.JPG") == "image/jpeg"
        assert mime_type_for("icon.svg") == "image/svg+xml"
        assert mime_type_for("noextension") == "image/png"
        assert mime_type_for("archive.unknown") == "image/png"

    def test_image_urls_walks_tree_in_order(self):
        blocks = [
            image_block("https://img.test/a.png", "a"),
            make_block(
                "toggle",
                "t",
                children=[
                    image_block("https://img.test/b.png", "b"),
                    image_block("https://img.test/a.png", "dup"),
                ],
            ),
            make_block("callout", "c", icon={"type": "external", "external": {"url": "https://img.test/c.png"}}),
            image_block("data:image/png;base64,AA==", "embedded"),
        ]
        assert image_urls(blocks) == [
            "https://img.test/a.png",
            "https://img.test/b.png",
            "https://img.test/c.png",
        ]


class TestImageResolver:
    @pytest.mark.asyncio
    @respx.mock
    async def test_embeds_fetched_image(self, image_config: ImageConfig):
        route = respx.get("https://img.test/a.png").respond(
            200, content=PNG, headers={"content-type": "image/png; charset=binary"}
        )

        async with ImageResolver(image_config) as resolver:
            result = await resolver.resolve("https://img.test/a.png")

        assert route.called
        assert route.calls[0].request.headers["user-agent"] == image_config.user_agent
        assert result == "data:image/png;base64," + base64.b64encode(PNG).decode()

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_content_type_defaults_to_png(self, image_config: ImageConfig):
        respx.get("https://img.test/raw").respond(200, content=b"xyz")

        async with ImageResolver(image_config) as resolver:
            result = await resolver.resolve("https://img.test/raw")

        assert result.startswith("data:image/png;base64,")

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout_keeps_original_url(self, image_config: ImageConfig):
        respx.get("https://img.test/slow.png").mock(side_effect=httpx.ReadTimeout("timed out"))

        async with ImageResolver(image_config) as resolver:
            result = await resolver.resolve("https://img.test/slow.png")

        assert result == "https://img.test/slow.png"

    @pytest.mark.asyncio
    @respx.mock
    async def test_http_error_keeps_original_url(self, image_config: ImageConfig):
        respx.get("https://img.test/gone.png").respond(403)

        async with ImageResolver(image_config) as resolver:
            result = await resolver.resolve("https://img.test/gone.png")

        assert result == "https://img.test/gone.png"

    @pytest.mark.asyncio
    async def test_embedded_reference_passes_through(self, image_config: ImageConfig):
        resolver = ImageResolver(image_config)
        assert await resolver.resolve("data:image/png;base64,AA==") == "data:image/png;base64,AA=="

    @pytest.mark.asyncio
    @respx.mock
    async def test_resolve_many_deduplicates(self, image_config: ImageConfig):
        route = respx.get("https://img.test/a.png").respond(200, content=PNG, headers={"content-type": "image/png"})

        async with ImageResolver(image_config) as resolver:
            result = await resolver.resolve_many(["https://img.test/a.png", "https://img.test/a.png", ""])

        assert list(result) == ["https://img.test/a.png"]
        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_timed_out_image_still_renders_with_original_url(self, image_config: ImageConfig):
        respx.get("https://img.test/ok.png").respond(200, content=PNG, headers={"content-type": "image/png"})
        respx.get("https://img.test/slow.png").mock(side_effect=httpx.ConnectTimeout("timed out"))
        blocks = [image_block("https://img.test/ok.png", "ok"), image_block("https://img.test/slow.png", "slow")]

        async with ImageResolver(image_config) as resolver:
            images = await resolver.resolve_blocks(blocks)

        transpiler = BlockTranspiler(images)
        html = transpiler.transpile(blocks)
        assert '<img src="data:image/png;base64,' in html
        assert '<img src="https://img.test/slow.png"' in html
        assert transpiler.warnings == []

    @pytest.mark.asyncio
    async def test_shared_client_is_not_closed(self, image_config: ImageConfig):
        client = httpx.AsyncClient()
        try:
            async with ImageResolver(image_config, client=client):
                pass
            assert not client.is_closed
        finally:
            await client.aclose()


class TestImageAliasMap:
    def test_lookup_variants(self):
        aliases = ImageAliasMap()
        aliases.add("assets/My Image.png", "data:image/png;base64,AA==")

        assert aliases.lookup("assets/My Image.png") == "data:image/png;base64,AA=="
        assert aliases.lookup("./assets/My Image.png") == "data:image/png;base64,AA=="
        assert aliases.lookup("assets/My%20Image.png") == "data:image/png;base64,AA=="
        assert aliases.lookup("My%20Image.png") == "data:image/png;base64,AA=="
        assert aliases.lookup("other/My Image.png") == "data:image/png;base64,AA=="
        assert aliases.lookup("missing.png") is None

    def test_first_image_keeps_shared_alias(self):
        aliases = ImageAliasMap()
        aliases.add("a/logo.png", "data:first")
        aliases.add("b/logo.png", "data:second")

        assert aliases.lookup("logo.png") == "data:first"
        assert aliases.lookup("b/logo.png") == "data:second"

    def test_add_image_infers_mime_type(self):
        aliases = ImageAliasMap()
        aliases.add_image("pic.jpeg", b"abc")
        assert aliases.lookup("pic.jpeg") == "data:image/jpeg;base64,YWJj"
        assert "pic.jpeg" in aliases
        assert len(aliases) > 0


class TestEmbedding:
    @pytest.fixture
    def aliases(self) -> ImageAliasMap:
        aliases = ImageAliasMap()
        aliases.add("img/a.png", "data:image/png;base64,AA==")
        return aliases

    def test_html_img_and_css_url(self, aliases: ImageAliasMap):
        html = (
            '<img src="img/a.png" alt="a">'
            '<div style="background: url(\'./img/a.png\')"></div>'
            '<img src="https://cdn.test/a.png">'
        )
        result = embed_images_in_html(html, aliases)

        assert '<img src="data:image/png;base64,AA==" alt="a">' in result
        assert "url('data:image/png;base64,AA==')" in result
        assert '<img src="https://cdn.test/a.png">' in result

    def test_html_unknown_reference_unchanged(self, aliases: ImageAliasMap):
        html = '<img src="nothere.png">'
        assert embed_images_in_html(html, aliases) == html

    def test_markdown_image(self, aliases: ImageAliasMap):
        markdown = '![diagram](img/a.png "Title") and ![remote](https://x.test/a.png)'
        result = embed_images_in_markdown(markdown, aliases)

        assert result.startswith('![diagram](data:image/png;base64,AA== "Title")')
        assert "![remote](https://x.test/a.png)" in result

    def test_empty_map_is_noop(self):
        html = '<img src="img/a.png">'
        assert embed_images_in_html(html, ImageAliasMap()) == html
        assert embed_images_in_markdown("![x](a.png)", ImageAliasMap()) == "![x](a.png)"
