"""Browser-side collaborators: browser lifecycle, Gmail mailbox, link following."""

from .browser import BrowserManager
from .links import follow_link_in_new_tab
from .mailbox import GmailMailbox
from .processor import MessageOutcome, MessageProcessor, ProcessSummary

__all__ = [
    "BrowserManager",
    "GmailMailbox",
    "MessageOutcome",
    "MessageProcessor",
    "ProcessSummary",
    "follow_link_in_new_tab",
]
