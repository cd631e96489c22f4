"""Rendering surfaces that turn a frame's markup into image bytes.

A surface is opened once per worker and yields a page. The page is used
for every frame that worker owns and is closed when the worker finishes,
fails or is cancelled.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from playwright.async_api import Page, async_playwright

logger = logging.getLogger(__name__)


class SurfacePage(ABC):
    """A paintable page owned by one worker."""

    @abstractmethod
    async def capture(self, markup: str) -> bytes:
        """Paint ``markup`` and return the encoded frame image."""
        ...


class RenderSurface(ABC):
    """Factory for per-worker pages."""

    @abstractmethod
    def open(
        self, width: int, height: int, device_scale_factor: float = 1.0
    ) -> AbstractAsyncContextManager[SurfacePage]: ...


class MarkupPage(SurfacePage):
    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.captured = 0

    async def capture(self, markup: str) -> bytes:
        self.captured += 1
        return markup.encode("utf-8")


class MarkupSurface(RenderSurface):
    """Writes each frame's HTML document instead of a raster image.

    Output is byte-for-byte deterministic and needs no browser, which makes
    it useful for inspecting a composition frame by frame.
    """

    def __init__(self):
        self.pages: list[MarkupPage] = []

    @asynccontextmanager
    async def open(
        self, width: int, height: int, device_scale_factor: float = 1.0
    ) -> AsyncIterator[SurfacePage]:
        page = MarkupPage(width, height)
        self.pages.append(page)
        yield page


class PlaywrightPage(SurfacePage):
    def __init__(self, page: Page, timeout_ms: float):
        self.page = page
        self.timeout_ms = timeout_ms

    async def capture(self, markup: str) -> bytes:
        await self.page.set_content(markup, wait_until="load", timeout=self.timeout_ms)
        return await self.page.screenshot(type="png", timeout=self.timeout_ms)


class PlaywrightSurface(RenderSurface):
    """Headless Chromium surface; each worker gets its own browser."""

    def __init__(self, timeout_ms: float = 30000, launch_options: dict | None = None):
        self.timeout_ms = timeout_ms
        self.launch_options = launch_options or {}

    @asynccontextmanager
    async def open(
        self, width: int, height: int, device_scale_factor: float = 1.0
    ) -> AsyncIterator[SurfacePage]:
        async with async_playwright() as p:
            browser = await p.chromium.launch(**self.launch_options)
            try:
                context = await browser.new_context(
                    viewport={"width": width, "height": height},
                    device_scale_factor=device_scale_factor,
                )
                page = await context.new_page()
                logger.debug("Opened %dx%d page at scale %.2f", width, height, device_scale_factor)
                yield PlaywrightPage(page, self.timeout_ms)
            finally:
                await browser.close()
