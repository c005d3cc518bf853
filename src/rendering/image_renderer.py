# src/rendering/image_renderer.py

"""HTML-to-PNG rasterization backends."""

import base64
import logging
from abc import ABC, abstractmethod

from playwright.async_api import async_playwright

logger = logging.getLogger("ime_crawler.image")

# 1x1 transparent PNG
PLACEHOLDER_PNG: bytes = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk"
    "YPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


class ImageRenderer(ABC):
    """Turns an HTML document into PNG bytes."""

    @abstractmethod
    async def rasterize(self, html: str) -> bytes:
        """Render *html* and return the full-page image."""
        ...


class PlaywrightImageRenderer(ImageRenderer):
    """Headless Chromium renderer.

    Waits for network idle so web fonts and late layout settle, then
    captures the whole scrollable page rather than the first viewport.
    """

    def __init__(
        self,
        viewport_width: int = 1280,
        timeout_ms: int = 30_000,
    ) -> None:
        self.viewport_width = viewport_width
        self.timeout_ms = timeout_ms

    async def rasterize(self, html: str) -> bytes:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=True)
            try:
                page = await browser.new_page(
                    viewport={"width": self.viewport_width, "height": 800},
                )
                await page.set_content(
                    html,
                    wait_until="networkidle",
                    timeout=self.timeout_ms,
                )
                png: bytes = await page.screenshot(
                    full_page=True, type="png",
                )
            finally:
                await browser.close()
        logger.debug("Rasterized %d chars of HTML to %d bytes", len(html), len(png))
        return png


class StaticImageRenderer(ImageRenderer):
    """Deterministic renderer returning fixed bytes; keeps what it saw."""

    def __init__(self, image: bytes = PLACEHOLDER_PNG) -> None:
        self.image = image
        self.documents: list[str] = []

    async def rasterize(self, html: str) -> bytes:
        self.documents.append(html)
        return self.image
