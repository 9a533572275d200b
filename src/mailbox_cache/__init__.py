"""Mailbox Cache - client-side email header cache and pagination coordinator.

This package keeps a volatile, per-mailbox cache of email headers consistent
with a paginated remote mail gateway, and layers a multi-select state machine
on top of the cached rows.
"""

__version__ = "0.1.0"
__author__ = "Trickl"

from mailbox_cache.config import Settings, get_settings
from mailbox_cache.session import MailboxSession

__all__ = ["MailboxSession", "Settings", "get_settings", "__version__", "__author__"]
