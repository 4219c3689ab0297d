"""Gmail mailbox session driven through the web UI.

Mailbox actions use Gmail keyboard shortcuts where possible; selector lookups
are only used for the search box, the message list and the delete button.
Signing in is not handled here: the page is expected to be authenticated
already (for example through saved storage state).
"""

from __future__ import annotations

from playwright.async_api import Page
from playwright.async_api import Error as PlaywrightError

from ..core.exceptions import BrowserError, MailboxError
from ..core.logger import Logger
from .browser import BrowserManager

log = Logger("mailbox")

SEARCH_BOX_SELECTOR = 'input[aria-label="メールを検索"], input[aria-label="Search mail"], input[placeholder*="検索"]'

MESSAGE_ROW_SELECTORS = (
    "tr.zA",
    'div[role="main"] table tbody tr[role="row"]',
    "table.F tbody tr",
)

DELETE_BUTTON_SELECTORS = (
    'div[data-tooltip="ゴミ箱に移動"]',
    'div[data-tooltip="Delete"]',
    'div[aria-label="ゴミ箱に移動"]',
    'div[aria-label="Delete"]',
    'button[aria-label="ゴミ箱に移動"]',
    'button[aria-label="Delete"]',
    '[data-tooltip*="ゴミ箱"]',
    '[aria-label*="ゴミ箱"]',
    '[data-tooltip*="Delete"]',
    '[aria-label*="Delete"]',
)

DELETE_SHORTCUTS = ("#", "Shift+3")

_COUNT_ROWS_SCRIPT = """
(selectors) => {
  for (const selector of selectors) {
    const rows = document.querySelectorAll(selector);
    if (rows.length > 0) return rows.length;
  }
  return 0;
}
"""

_CLICK_ROW_SCRIPT = """
({ selectors, index }) => {
  const main = document.querySelector('div[role="main"]');
  if (main) main.scrollTop = 0;
  for (const selector of selectors) {
    const rows = document.querySelectorAll(selector);
    if (rows.length > index) {
      rows[index].click();
      return true;
    }
  }
  return false;
}
"""


class GmailMailbox:
    """Search, open, mark unread and delete messages in a Gmail tab."""

    def __init__(self, page: Page, browser: BrowserManager, timeout: int = 30000) -> None:
        """Initialize the mailbox session.

        Args:
            page: Authenticated Gmail page.
            browser: Browser manager used for navigation helpers.
            timeout: Default wait timeout in milliseconds.
        """
        self.page = page
        self.browser = browser
        self.timeout = timeout

    async def open(self, url: str) -> None:
        """Navigate to the mailbox at *url*."""
        log.log_automation_step("open mailbox", {"url": url})
        await self.browser.goto(self.page, url, self.timeout)

    async def search(self, query: str) -> None:
        """Run *query* in the search box and reload so the result list is fresh."""
        log.log_automation_step("search", {"query": query})
        try:
            await self.browser.wait_for_selector(self.page, SEARCH_BOX_SELECTOR, 10000)
            await self.page.fill(SEARCH_BOX_SELECTOR, query)
            await self.page.keyboard.press("Enter")
            await self.page.wait_for_timeout(1000)
            # The inbox DOM lingers after searching; reload to render the results.
            await self.page.reload(wait_until="domcontentloaded")
            await self.page.wait_for_timeout(1500)
        except (BrowserError, PlaywrightError) as exc:
            raise MailboxError(f"Mail search failed: {exc}") from exc

    async def count_messages(self) -> int:
        """Return the number of rows in the current message list."""
        try:
            count = await self.page.evaluate(_COUNT_ROWS_SCRIPT, list(MESSAGE_ROW_SELECTORS))
        except PlaywrightError as exc:
            raise MailboxError(f"Failed to count messages: {exc.message}") from exc
        log.info(f"Search returned {count} messages")
        return int(count)

    async def open_message(self, index: int) -> None:
        """Open the message at *index* (0-based) of the current list."""
        log.log_automation_step("open message", {"index": index})
        try:
            clicked = await self.page.evaluate(
                _CLICK_ROW_SCRIPT, {"selectors": list(MESSAGE_ROW_SELECTORS), "index": index}
            )
            if clicked:
                await self.page.wait_for_timeout(800)
        except PlaywrightError as exc:
            raise MailboxError(f"Failed to open message {index + 1}: {exc.message}") from exc
        if not clicked:
            raise MailboxError(f"Message {index + 1} not found in the result list")

    async def back_to_results(self) -> None:
        """Close the open message with Escape; navigating back would mark it read again."""
        try:
            await self.page.keyboard.press("Escape")
            await self.page.wait_for_timeout(300)
        except PlaywrightError as exc:
            raise MailboxError(f"Failed to return to results: {exc.message}") from exc

    async def mark_as_unread(self) -> None:
        """Mark the open message unread (Shift+U)."""
        log.log_automation_step("mark as unread")
        try:
            await self.page.keyboard.press("Shift+U")
            await self.page.wait_for_timeout(200)
        except PlaywrightError as exc:
            raise MailboxError(f"Failed to mark message unread: {exc.message}") from exc

    async def delete_message(self) -> bool:
        """Move the open message to the trash.

        Tries the visible delete button first, then the keyboard shortcuts.

        Returns:
            True if a delete action was dispatched, False if every strategy failed.
        """
        log.log_automation_step("delete message")
        deleted = await self._click_delete_button()

        if not deleted:
            for shortcut in DELETE_SHORTCUTS:
                try:
                    await self.page.keyboard.press(shortcut)
                except PlaywrightError as exc:
                    log.debug(f"Delete shortcut {shortcut} failed: {exc.message}")
                    continue
                log.debug(f"Sent delete shortcut {shortcut}")
                deleted = True
                break

        if not deleted:
            log.warning("Could not delete message, continuing")

        await self.page.wait_for_timeout(500)
        return deleted

    async def _click_delete_button(self) -> bool:
        for selector in DELETE_BUTTON_SELECTORS:
            try:
                button = await self.page.query_selector(selector)
                if button is None or not await button.is_visible():
                    continue
                await button.click()
            except PlaywrightError:
                continue
            log.debug(f"Clicked delete button {selector}")
            return True
        return False
