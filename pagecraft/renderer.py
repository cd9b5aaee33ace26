"""Headless Chromium renderer built on Playwright.

The browser is owned by a :class:`PdfRenderer` instance and released when
its ``async with`` block exits, on error paths included.  Each render
uses a fresh page so concurrent conversions never share DOM state.
"""

from __future__ import annotations

import asyncio

import structlog
from playwright.async_api import Browser, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from .config import RenderConfig
from .errors import RenderError, RenderTimeoutError
from .print_params import PrintParameters

logger = structlog.get_logger()


class PdfRenderer:
    """Rasterizes a complete HTML document into PDF bytes.

    Usage::

        async with PdfRenderer(config.render) as renderer:
            pdf = await renderer.render(document, params)
    """

    def __init__(self, config: RenderConfig) -> None:
        self._config = config
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    async def start(self) -> None:
        if self._browser is not None:
            return
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=True,
                args=self._config.launch_args,
            )
        except PlaywrightError as exc:
            await self._playwright.stop()
            self._playwright = None
            raise RenderError(f"Failed to launch Chromium: {exc}") from exc
        logger.info("renderer_started")

    async def stop(self) -> None:
        browser, playwright = self._browser, self._playwright
        self._browser = None
        self._playwright = None
        try:
            if browser is not None:
                await browser.close()
        finally:
            if playwright is not None:
                await playwright.stop()
        if browser is not None:
            logger.info("renderer_stopped")

    async def __aenter__(self) -> PdfRenderer:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    async def render(self, document: str, params: PrintParameters) -> bytes:
        """Render *document* to PDF; no overall time limit."""
        if self._browser is None:
            raise AssertionError("Renderer not started")

        page = await self._browser.new_page()
        try:
            await page.set_content(document, wait_until="domcontentloaded")
            await self._wait_for_fonts(page)
            await asyncio.sleep(self._config.settle_seconds)
            pdf = await page.pdf(**params.as_pdf_kwargs())
        except PlaywrightError as exc:
            raise RenderError(f"PDF generation failed: {exc}") from exc
        finally:
            await page.close()

        logger.info("pdf_rendered", size=len(pdf), format=params.format)
        return pdf

    async def render_with_timeout(
        self,
        document: str,
        params: PrintParameters,
        timeout_seconds: float | None = None,
    ) -> bytes:
        """Render under a wall-clock budget; raises :class:`RenderTimeoutError`."""
        budget = timeout_seconds if timeout_seconds is not None else self._config.timeout_seconds
        try:
            async with asyncio.timeout(budget):
                return await self.render(document, params)
        except TimeoutError as exc:
            logger.warning("pdf_render_timed_out", timeout_seconds=budget)
            raise RenderTimeoutError(budget) from exc

    async def _wait_for_fonts(self, page) -> None:
        try:
            async with asyncio.timeout(self._config.font_wait_seconds):
                await page.evaluate("document.fonts.ready.then(() => true)")
        except TimeoutError:
            logger.debug("font_wait_timed_out")
