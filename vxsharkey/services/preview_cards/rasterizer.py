"""HTML to PNG rasterization using a shared headless Chromium."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from playwright.async_api import Browser, Playwright, async_playwright

from vxsharkey.services.preview_cards.constants import (
    BROWSER_ARGS,
    OUTPUT_HEIGHT,
    OUTPUT_WIDTH,
)

logger = logging.getLogger(__name__)


class BrowserRasterizer:
    """Screenshots card documents with one long-lived browser per process.

    The browser is launched lazily on first use. A failed launch is not
    fatal: ``rasterize`` returns ``None`` and the next call tries again.
    """

    def __init__(
        self,
        executable_path: Optional[str] = None,
        timeout_seconds: float = 15.0,
    ) -> None:
        self.executable_path = executable_path
        self.timeout_ms = int(timeout_seconds * 1000)
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()

    async def get_browser(self) -> Optional[Browser]:
        """Return the shared browser, launching it if needed."""
        if self._browser is not None and self._browser.is_connected():
            return self._browser

        async with self._lock:
            if self._browser is not None and self._browser.is_connected():
                return self._browser
            try:
                if self._playwright is None:
                    self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=True,
                    executable_path=self.executable_path,
                    args=list(BROWSER_ARGS),
                )
                logger.info(
                    f"Launched headless browser (executable={self.executable_path or 'bundled'})"
                )
            except Exception:
                logger.exception("Failed to launch browser")
                self._browser = None
                return None
            return self._browser

    async def rasterize(self, html: str) -> Optional[bytes]:
        """Render ``html`` in a fresh page and capture the card region.

        Returns ``None`` when no browser is available. Rendering errors
        propagate to the caller; the page is closed on every path.
        """
        browser = await self.get_browser()
        if browser is None:
            return None

        page = await browser.new_page(
            viewport={"width": OUTPUT_WIDTH, "height": OUTPUT_HEIGHT}
        )
        try:
            await page.set_content(html, wait_until="networkidle", timeout=self.timeout_ms)
            return await page.screenshot(
                type="png",
                clip={"x": 0, "y": 0, "width": OUTPUT_WIDTH, "height": OUTPUT_HEIGHT},
                timeout=self.timeout_ms,
            )
        finally:
            await page.close()

    async def close(self) -> None:
        """Shut down the browser and the Playwright driver."""
        if self._browser is not None:
            try:
                await self._browser.close()
                logger.info("Headless browser closed")
            except Exception:
                logger.exception("Failed to close browser")
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
