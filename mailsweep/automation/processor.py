"""Apply the image match decision to the currently open message."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from playwright.async_api import Page

from ..core.exceptions import MailsweepError
from ..core.logger import Logger
from ..vision.matcher import ImageMatcher
from ..vision.page import PageSurface, PlaywrightPageSurface
from ..vision.references import ReferenceImageSet
from .links import NewPageCallback, follow_link_in_new_tab
from .mailbox import GmailMailbox

log = Logger("processor")


class MessageOutcome(str, Enum):
    """What happened to a processed message."""

    LINK_FOLLOWED = "link_followed"
    MARKED_UNREAD = "marked_unread"
    FAILED = "failed"


@dataclass
class ProcessSummary:
    """Running totals for a mailbox pass."""

    total_mails: int = 0
    processed_mails: int = 0
    clicked_links: int = 0
    deleted_mails: int = 0
    marked_as_unread: int = 0
    errors: int = 0
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None

    def finish(self) -> None:
        self.end_time = datetime.now()

    @property
    def duration_seconds(self) -> float:
        end = self.end_time or datetime.now()
        return (end - self.start_time).total_seconds()


class MessageProcessor:
    """Decide and act on one open message.

    When a reference image is found the surrounding link is followed in a new
    tab and the message is deleted; otherwise the message is marked unread.
    The result list is shown again in both cases.
    """

    def __init__(
        self,
        page: Page,
        mailbox: GmailMailbox,
        matcher: ImageMatcher,
        references: ReferenceImageSet,
        on_new_page: Optional[NewPageCallback] = None,
        summary: Optional[ProcessSummary] = None,
        surface: Optional[PageSurface] = None,
    ) -> None:
        self.page = page
        self.mailbox = mailbox
        self.matcher = matcher
        self.references = references
        self.on_new_page = on_new_page
        self.summary = summary or ProcessSummary()
        self.surface = surface or PlaywrightPageSurface(page)

    async def count_pending(self) -> int:
        """Count the messages in the current result list and record it as ``total_mails``."""
        self.summary.total_mails = await self.mailbox.count_messages()
        return self.summary.total_mails

    async def process_open_message(self) -> MessageOutcome:
        """Run the match decision on the open message and apply it."""
        start = time.perf_counter()
        try:
            result = await self.matcher.find_target_image(self.surface, self.references)
            if result.found and result.element is not None:
                await follow_link_in_new_tab(self.page, result.element.handle, self.on_new_page)
                self.summary.clicked_links += 1
                if await self.mailbox.delete_message():
                    self.summary.deleted_mails += 1
                outcome = MessageOutcome.LINK_FOLLOWED
            else:
                await self.mailbox.mark_as_unread()
                self.summary.marked_as_unread += 1
                outcome = MessageOutcome.MARKED_UNREAD
        except MailsweepError as exc:
            log.error(f"Message processing failed: {exc}")
            self.summary.errors += 1
            outcome = MessageOutcome.FAILED

        await self.mailbox.back_to_results()
        if outcome is not MessageOutcome.FAILED:
            self.summary.processed_mails += 1
        log.log_performance(f"process message ({outcome.value})", (time.perf_counter() - start) * 1000)
        return outcome
