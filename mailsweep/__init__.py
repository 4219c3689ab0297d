"""mailsweep: image-driven webmail triage.

The package opens a webmail search, inspects each message for a known set of
reference images and either follows the matching link (discarding the message)
or restores the message to unread.
"""

__version__ = "0.1.0"
