"""Core components of mailsweep: configuration, logging and errors."""

from .config import Config, config
from .exceptions import (
    BrowserError,
    CaptureError,
    DecodeError,
    MailboxError,
    MailsweepError,
    NotFoundError,
    ReferenceLoadError,
)
from .logger import Logger, log

__all__ = [
    "BrowserError",
    "CaptureError",
    "Config",
    "DecodeError",
    "Logger",
    "MailboxError",
    "MailsweepError",
    "NotFoundError",
    "ReferenceLoadError",
    "config",
    "log",
]
