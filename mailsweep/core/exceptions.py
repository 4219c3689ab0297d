"""Exception hierarchy shared across mailsweep."""

from __future__ import annotations


class MailsweepError(RuntimeError):
    """Base class for every error raised by mailsweep."""


class NotFoundError(MailsweepError, FileNotFoundError):
    """Raised when the reference image source does not exist."""


class ReferenceLoadError(MailsweepError):
    """Raised when a qualifying reference file cannot be read."""


class DecodeError(MailsweepError, ValueError):
    """Raised when image bytes cannot be decoded into a raster."""


class CaptureError(MailsweepError):
    """Raised when an element screenshot cannot be captured."""


class BrowserError(MailsweepError):
    """Raised when a browser operation fails."""


class MailboxError(MailsweepError):
    """Raised when a mailbox operation fails."""
