"""Browser lifecycle and navigation helpers built on Playwright."""

from __future__ import annotations

import os
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from ..core.exceptions import BrowserError
from ..core.logger import Logger

log = Logger("browser")

DEFAULT_VIEWPORT = {"width": 1280, "height": 720}


class BrowserManager:
    """Owns one Chromium instance and the pages opened in it."""

    def __init__(self) -> None:
        """Initialize the browser manager."""
        self._playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None

    async def launch(self, headless: bool = True, slow_mo: Optional[float] = None) -> Browser:
        """Start Playwright and launch Chromium.

        Args:
            headless: Run without a visible window.
            slow_mo: Delay in milliseconds inserted between Playwright operations.

        Returns:
            The launched browser.
        """
        try:
            self._playwright = await async_playwright().start()
            self.browser = await self._playwright.chromium.launch(headless=headless, slow_mo=slow_mo)
        except PlaywrightError as exc:
            await self._stop_playwright()
            raise BrowserError(f"Failed to launch browser: {exc.message}") from exc
        log.info(f"Browser launched (headless={headless})")
        return self.browser

    async def new_page(self, storage_state_path: Optional[str] = None) -> tuple[Page, BrowserContext]:
        """Open a new context and page, reusing saved auth state when present.

        Args:
            storage_state_path: Storage state file to load if it exists.

        Returns:
            Tuple of ``(page, context)``.
        """
        if self.browser is None:
            raise BrowserError("Browser is not launched. Call launch() first.")

        storage_state = None
        if storage_state_path and os.path.exists(storage_state_path):
            log.info(f"Loading storage state from {storage_state_path}")
            storage_state = storage_state_path

        try:
            context = await self.browser.new_context(
                viewport=DEFAULT_VIEWPORT,
                java_script_enabled=True,
                storage_state=storage_state,
            )
            page = await context.new_page()
        except PlaywrightError as exc:
            raise BrowserError(f"Failed to create page: {exc.message}") from exc
        return page, context

    async def save_storage_state(self, context: BrowserContext, storage_state_path: str) -> None:
        """Persist cookies and local storage of *context* to *storage_state_path*."""
        try:
            await context.storage_state(path=storage_state_path)
        except PlaywrightError as exc:
            raise BrowserError(f"Failed to save storage state: {exc.message}") from exc
        log.info(f"Storage state saved to {storage_state_path}")

    async def goto(self, page: Page, url: str, timeout: int = 30000) -> None:
        """Navigate *page* to *url*, waiting for ``domcontentloaded``."""
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout)
        except PlaywrightError as exc:
            raise BrowserError(f"Failed to navigate to {url}: {exc.message}") from exc

    async def wait_for_selector(self, page: Page, selector: str, timeout: int = 30000) -> None:
        """Wait until *selector* is visible."""
        try:
            await page.wait_for_selector(selector, state="visible", timeout=timeout)
        except PlaywrightError as exc:
            raise BrowserError(f"Timed out waiting for {selector}: {exc.message}") from exc

    async def click(self, page: Page, selector: str, timeout: int = 30000) -> None:
        """Wait for *selector* to become visible, then click it."""
        await self.wait_for_selector(page, selector, timeout)
        try:
            await page.click(selector)
        except PlaywrightError as exc:
            raise BrowserError(f"Failed to click {selector}: {exc.message}") from exc

    async def close(self) -> None:
        """Close the browser and stop Playwright."""
        try:
            if self.browser is not None:
                await self.browser.close()
        except PlaywrightError as exc:
            raise BrowserError(f"Failed to close browser: {exc.message}") from exc
        finally:
            self.browser = None
            await self._stop_playwright()
        log.info("Browser closed")

    async def _stop_playwright(self) -> None:
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
