"""Contract of the remote mail gateway consumed by the cache core.

The gateway performs the protocol-level work (IMAP listing, deletion, IDLE
notifications). Implementations raise the ``GatewayError`` family or any other
exception; the coordinator classifies whatever it receives.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol

from mailbox_cache.models import EmailHeader, MailboxListing

NewMailCallback = Callable[[str, str, int], None]
Unsubscribe = Callable[[], None]


class MailGateway(Protocol):
    """Asynchronous mail gateway used by the coordinator and push listener."""

    async def list_page(
        self,
        account_id: str,
        mailbox: str,
        offset: int,
        limit: int,
    ) -> Sequence[EmailHeader]:
        """Return up to ``limit`` headers starting at ``offset`` (newest first)."""
        ...

    async def select_mailbox(
        self,
        account_id: str,
        mailbox: str,
        initial_limit: int,
    ) -> MailboxListing:
        """Open a mailbox and return its first headers plus the total count."""
        ...

    async def delete_by_uid(self, account_id: str, mailbox: str, uids: Sequence[int]) -> None:
        """Delete messages; raises on failure."""
        ...

    async def mark_seen(self, account_id: str, mailbox: str, uid: int, seen: bool) -> None:
        """Set or clear the ``\\Seen`` flag of one message."""
        ...

    def subscribe_new_mail(self, callback: NewMailCallback) -> Unsubscribe:
        """Register ``callback(account_id, mailbox, new_count)``; returns an unsubscribe handle."""
        ...
