"""Embed images as ``data:`` URIs.

Notion serves uploaded images from signed URLs that expire after about
an hour, and imported HTML/Markdown archives reference images by
relative path.  Both are turned into self-contained references here.
"""

from __future__ import annotations

import asyncio
import base64
import posixpath
import re
from collections.abc import Iterable, Sequence
from urllib.parse import quote, unquote

import httpx
import structlog

from .config import ImageConfig
from .models import Block, BlockType

logger = structlog.get_logger()

DEFAULT_IMAGE_TYPE = "image/png"

_MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "ico": "image/x-icon",
}


def is_embedded(reference: str) -> bool:
    return reference.startswith("data:")


def to_data_uri(payload: bytes, content_type: str = DEFAULT_IMAGE_TYPE) -> str:
    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def mime_type_for(path: str) -> str:
    """Guess an image MIME type from a file extension."""
    extension = path.rsplit(".", 1)[-1].lower() if "." in path else ""
    return _MIME_TYPES.get(extension, DEFAULT_IMAGE_TYPE)


def image_urls(blocks: Iterable[Block]) -> list[str]:
    """Remote image URLs referenced by a block tree, in source order."""
    urls: list[str] = []
    for root in blocks:
        for block in root.walk():
            url: str | None = None
            if block.kind is BlockType.IMAGE:
                url = block.media_url
            elif block.kind is BlockType.CALLOUT:
                icon = block.payload.get("icon") or {}
                source = icon.get(icon.get("type") or "") or {}
                url = source.get("url") if isinstance(source, dict) else None
            if url and not is_embedded(url) and url not in urls:
                urls.append(url)
    return urls


class ImageResolver:
    """Fetches remote images and re-encodes them as ``data:`` URIs.

    Resolution never raises: on any failure the original URL is returned
    so the document still renders, just with a link that may expire.
    """

    def __init__(self, config: ImageConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._client = client
        self._owns_client = client is None
        self._semaphore = asyncio.Semaphore(max(config.max_concurrent_fetches, 1))

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.timeout_seconds),
                headers={"User-Agent": self._config.user_agent},
                follow_redirects=True,
            )
            logger.debug("image_resolver_started")

    async def stop(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            logger.debug("image_resolver_stopped")

    async def __aenter__(self) -> ImageResolver:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve(self, url: str) -> str:
        """Return *url* as an embedded reference, or unchanged on failure."""
        if not url or is_embedded(url):
            return url
        if self._client is None:
            raise AssertionError("Resolver not started")

        async with self._semaphore:
            try:
                response = await self._client.get(
                    url,
                    headers={"User-Agent": self._config.user_agent},
                )
                response.raise_for_status()
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                logger.warning(
                    "image_fetch_failed",
                    url=_redact(url),
                    error=type(exc).__name__,
                )
                return url

        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        logger.debug("image_embedded", url=_redact(url), size=len(response.content))
        return to_data_uri(response.content, content_type or DEFAULT_IMAGE_TYPE)

    async def resolve_many(self, urls: Sequence[str]) -> dict[str, str]:
        """Resolve URLs concurrently; returns a url -> reference mapping."""
        unique = list(dict.fromkeys(u for u in urls if u))
        tasks: dict[str, asyncio.Task[str]] = {}
        async with asyncio.TaskGroup() as tg:
            for url in unique:
                tasks[url] = tg.create_task(self.resolve(url))

        resolved = {url: task.result() for url, task in tasks.items()}
        embedded = sum(1 for url, ref in resolved.items() if ref != url)
        if unique:
            logger.info("images_resolved", total=len(unique), embedded=embedded)
        return resolved

    async def resolve_blocks(self, blocks: Sequence[Block]) -> dict[str, str]:
        """Resolve every image referenced by a block tree."""
        return await self.resolve_many(image_urls(blocks))


def _redact(url: str) -> str:
    # Signed URLs carry credentials in the query string.
    return url.split("?", 1)[0]


# ------------------------------------------------------------------
# Local archives
# ------------------------------------------------------------------


def _strip_dot_slash(path: str) -> str:
    return path[2:] if path.startswith("./") else path


class ImageAliasMap:
    """Path -> data URI mapping for images imported from a local archive.

    Each image is registered under several aliases (URL-encoded, decoded,
    ``./``-prefixed, basename) so that references written in any of
    those forms still match.  The first image to claim an alias keeps it.
    """

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.lookup(path) is not None

    def add(self, path: str, data_uri: str) -> None:
        stripped = _strip_dot_slash(path)
        name = posixpath.basename(path)
        aliases = (
            path,
            stripped,
            name,
            f"./{path}",
            f"./{stripped}",
            quote(name),
            quote(path),
            unquote(name),
            unquote(path),
        )
        for alias in aliases:
            if alias:
                self._entries.setdefault(alias, data_uri)

    def add_image(self, path: str, payload: bytes) -> None:
        self.add(path, to_data_uri(payload, mime_type_for(path)))

    def lookup(self, src: str) -> str | None:
        """Find the embedded image for a reference, trying path variants in order."""
        decoded = unquote(src)
        candidates = (
            src,
            decoded,
            _strip_dot_slash(src),
            _strip_dot_slash(decoded),
            posixpath.basename(src),
            posixpath.basename(decoded),
        )
        for candidate in candidates:
            if candidate and candidate in self._entries:
                return self._entries[candidate]
        return None


_IMG_SRC = re.compile(r"""(<img\b[^>]*?\bsrc\s*=\s*)(["'])(.*?)\2""", re.IGNORECASE | re.DOTALL)
_CSS_URL = re.compile(r"""url\(\s*(["']?)([^"')]+?)\1\s*\)""", re.IGNORECASE)
_MD_IMAGE = re.compile(r"""!\[([^\]]*)\]\(\s*<?([^)\s>]+)>?(\s+"[^"]*")?\s*\)""")


def _embed_reference(aliases: ImageAliasMap, src: str) -> str | None:
    if is_embedded(src) or src.startswith(("http://", "https://")):
        return None
    return aliases.lookup(src)


def embed_images_in_html(html: str, aliases: ImageAliasMap) -> str:
    """Replace local ``<img src>`` and CSS ``url(...)`` references."""
    if not len(aliases):
        return html

    def replace_src(match: re.Match[str]) -> str:
        data_uri = _embed_reference(aliases, match.group(3))
        if data_uri is None:
            return match.group(0)
        return f"{match.group(1)}{match.group(2)}{data_uri}{match.group(2)}"

    def replace_url(match: re.Match[str]) -> str:
        data_uri = _embed_reference(aliases, match.group(2))
        if data_uri is None:
            return match.group(0)
        quote_char = match.group(1)
        return f"url({quote_char}{data_uri}{quote_char})"

    return _CSS_URL.sub(replace_url, _IMG_SRC.sub(replace_src, html))


def embed_images_in_markdown(markdown: str, aliases: ImageAliasMap) -> str:
    """Replace local ``![alt](path)`` references with data URIs."""
    if not len(aliases):
        return markdown

    def replace(match: re.Match[str]) -> str:
        data_uri = _embed_reference(aliases, match.group(2))
        if data_uri is None:
            return match.group(0)
        return f"![{match.group(1)}]({data_uri}{match.group(3) or ''})"

    return _MD_IMAGE.sub(replace, markdown)
