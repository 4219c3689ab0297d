"""Follow the link wrapping a matched image without leaving the mailbox tab."""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

from playwright.async_api import ElementHandle, Page
from playwright.async_api import Error as PlaywrightError

from ..core.exceptions import BrowserError
from ..core.logger import Logger

log = Logger("links")

NewPageCallback = Callable[[Page], Awaitable[None]]

# Nearest <a> ancestor's href, or null.
_ANCESTOR_HREF_SCRIPT = """
(el) => {
  let current = el;
  while (current) {
    if (current.tagName === 'A') return current.href || null;
    current = current.parentElement;
  }
  return null;
}
"""

NETWORK_IDLE_TIMEOUT_MS = 5000


async def find_link_href(element: ElementHandle) -> str:
    """Return the ``href`` of the closest anchor enclosing *element*."""
    try:
        href = await element.evaluate(_ANCESTOR_HREF_SCRIPT)
    except PlaywrightError as exc:
        raise BrowserError(f"Failed to resolve link of matched image: {exc.message}") from exc
    if not href:
        raise BrowserError("Matched image is not inside a link")
    return href


async def follow_link_in_new_tab(
    page: Page,
    element: ElementHandle,
    on_new_page: Optional[NewPageCallback] = None,
) -> str:
    """Open the link around *element* in a new tab of the same context.

    The tab waits for ``domcontentloaded`` and, best effort, network idle;
    *on_new_page* then runs against it. The tab is always closed afterwards.

    Args:
        page: Page holding the matched element.
        element: Matched image element.
        on_new_page: Optional coroutine run with the new tab, e.g. a site login step.

    Returns:
        The URL that was opened.
    """
    href = await find_link_href(element)
    log.info(f"Opening matched link in new tab: {href}")

    try:
        new_page = await page.context.new_page()
    except PlaywrightError as exc:
        raise BrowserError(f"Failed to open new tab: {exc.message}") from exc

    try:
        await new_page.goto(href, wait_until="domcontentloaded")
        try:
            await new_page.wait_for_load_state("networkidle", timeout=NETWORK_IDLE_TIMEOUT_MS)
        except PlaywrightError:
            log.debug("networkidle wait timed out, continuing after domcontentloaded")

        if on_new_page is not None:
            await on_new_page(new_page)
    except PlaywrightError as exc:
        raise BrowserError(f"Failed to follow link {href}: {exc.message}") from exc
    finally:
        await new_page.close()
        log.debug("Closed link tab")

    return href
