from __future__ import annotations

import pytest

from mailsweep.automation.browser import BrowserManager
from mailsweep.automation.mailbox import (
    DELETE_BUTTON_SELECTORS,
    MESSAGE_ROW_SELECTORS,
    SEARCH_BOX_SELECTOR,
    GmailMailbox,
)
from mailsweep.core.exceptions import MailboxError
from tests.playwright_fakes import FakeBrowserPage, FakeButton, FakeKeyboard


@pytest.fixture
def page() -> FakeBrowserPage:
    return FakeBrowserPage()


@pytest.fixture
def mailbox(page) -> GmailMailbox:
    return GmailMailbox(page, BrowserManager())


@pytest.mark.asyncio
async def test_open_navigates_to_mailbox(mailbox, page) -> None:
    await mailbox.open("https://mail.google.com")
    assert ("goto", "https://mail.google.com", "domcontentloaded") in page.events


@pytest.mark.asyncio
async def test_search_fills_query_and_reloads(mailbox, page) -> None:
    await mailbox.search("from:rakuten")

    assert ("wait_for_selector", SEARCH_BOX_SELECTOR, "visible") in page.events
    assert ("fill", SEARCH_BOX_SELECTOR, "from:rakuten") in page.events
    assert page.keyboard.pressed == ["Enter"]
    assert ("reload", "domcontentloaded") in page.events


@pytest.mark.asyncio
async def test_count_messages_uses_row_selectors(mailbox, page) -> None:
    page.evaluate_results = [7]

    assert await mailbox.count_messages() == 7
    assert page.events[-1] == ("evaluate", list(MESSAGE_ROW_SELECTORS))


@pytest.mark.asyncio
async def test_open_message_clicks_row(mailbox, page) -> None:
    page.evaluate_results = [True]

    await mailbox.open_message(2)

    assert ("evaluate", {"selectors": list(MESSAGE_ROW_SELECTORS), "index": 2}) in page.events


@pytest.mark.asyncio
async def test_open_missing_message_raises(mailbox, page) -> None:
    page.evaluate_results = [False]

    with pytest.raises(MailboxError, match="Message 4 not found"):
        await mailbox.open_message(3)


@pytest.mark.asyncio
async def test_mark_unread_and_back_use_shortcuts(mailbox, page) -> None:
    await mailbox.mark_as_unread()
    await mailbox.back_to_results()

    assert page.keyboard.pressed == ["Shift+U", "Escape"]


@pytest.mark.asyncio
async def test_mark_unread_failure_raises(mailbox, page) -> None:
    page.keyboard = FakeKeyboard(failing_keys={"Shift+U"})

    with pytest.raises(MailboxError):
        await mailbox.mark_as_unread()


@pytest.mark.asyncio
async def test_delete_prefers_visible_button(mailbox, page) -> None:
    hidden = FakeButton(visible=False)
    visible = FakeButton()
    page.buttons = {DELETE_BUTTON_SELECTORS[0]: hidden, DELETE_BUTTON_SELECTORS[3]: visible}

    assert await mailbox.delete_message()

    assert hidden.clicked == 0
    assert visible.clicked == 1
    assert page.keyboard.pressed == []


@pytest.mark.asyncio
async def test_delete_falls_back_to_shortcuts(mailbox, page) -> None:
    page.buttons = {DELETE_BUTTON_SELECTORS[0]: FakeButton(fail_click=True)}
    page.keyboard = FakeKeyboard(failing_keys={"#"})

    assert await mailbox.delete_message()
    assert page.keyboard.pressed == ["Shift+3"]


@pytest.mark.asyncio
async def test_delete_never_raises_when_everything_fails(mailbox, page) -> None:
    page.keyboard = FakeKeyboard(failing_keys={"#", "Shift+3"})

    assert await mailbox.delete_message() is False
