"""In-process mail gateway.

Backs the CLI demo and the test-suite. Mailboxes are plain lists in server
order (newest first); ``fail_next`` and ``gate`` make error paths and
in-flight loads observable.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog

from mailbox_cache.exceptions import MailboxNotFoundError
from mailbox_cache.gateway.base import NewMailCallback, Unsubscribe
from mailbox_cache.models import EmailHeader, MailboxListing
from mailbox_cache.models.email_header import ATTACHMENT_FLAG, FLAGGED_FLAG, SEEN_FLAG

logger = structlog.get_logger()

_EPOCH = datetime(2025, 1, 1, tzinfo=timezone.utc)


def seed_headers(count: int, start_uid: int = 1) -> list[EmailHeader]:
    """Generate ``count`` synthetic headers with uids ``start_uid..start_uid+count-1``."""

    headers: list[EmailHeader] = []
    for uid in range(start_uid, start_uid + count):
        flags: list[str] = []
        if uid % 3 == 0:
            flags.append(SEEN_FLAG)
        if uid % 5 == 0:
            flags.append(FLAGGED_FLAG)
        if uid % 7 == 0:
            flags.append(ATTACHMENT_FLAG)
        headers.append(
            EmailHeader(
                uid=uid,
                subject=f"Message {uid}",
                sender=f"sender{uid % 4}@example.com",
                date=_EPOCH - timedelta(minutes=uid),
                seen=SEEN_FLAG in flags,
                flags=tuple(flags),
                snippet=f"Preview of message {uid}",
            )
        )
    return headers


@dataclass
class InMemoryGateway:
    """Gateway that serves mailboxes held in memory."""

    # (account_id, mailbox) -> headers in server order
    mailboxes: dict[tuple[str, str], list[EmailHeader]] = field(default_factory=dict)

    # Raised (once) by the next gateway call, after ``gate`` opens.
    fail_next: BaseException | None = None

    # When set, every call waits for the event before answering.
    gate: asyncio.Event | None = None

    calls: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)

    _subscribers: list[NewMailCallback] = field(default_factory=list)

    # --- setup helpers --------------------------------------------------

    def seed(self, account_id: str, mailbox: str, count: int) -> list[EmailHeader]:
        headers = seed_headers(count)
        self.mailboxes[(account_id, mailbox)] = list(headers)
        return headers

    def deliver_new_mail(self, account_id: str, mailbox: str, count: int) -> list[EmailHeader]:
        """Insert ``count`` new messages at the top and notify subscribers."""

        stored = self._mailbox(account_id, mailbox)
        next_uid = max((h.uid for h in stored), default=0) + 1
        fresh = list(reversed(seed_headers(count, start_uid=next_uid)))
        stored[:0] = fresh

        for callback in list(self._subscribers):
            callback(account_id, mailbox, count)
        return fresh

    # --- gateway contract ------------------------------------------------

    async def list_page(
        self,
        account_id: str,
        mailbox: str,
        offset: int,
        limit: int,
    ) -> Sequence[EmailHeader]:
        await self._enter("list_page", account_id, mailbox, offset, limit)
        stored = self._mailbox(account_id, mailbox)
        return list(stored[offset : offset + limit])

    async def select_mailbox(self, account_id: str, mailbox: str, initial_limit: int) -> MailboxListing:
        await self._enter("select_mailbox", account_id, mailbox, initial_limit)
        stored = self._mailbox(account_id, mailbox)
        return MailboxListing(records=list(stored[:initial_limit]), total_count=len(stored))

    async def delete_by_uid(self, account_id: str, mailbox: str, uids: Sequence[int]) -> None:
        await self._enter("delete_by_uid", account_id, mailbox, tuple(uids))
        doomed = set(uids)
        stored = self._mailbox(account_id, mailbox)
        stored[:] = [h for h in stored if h.uid not in doomed]

    async def mark_seen(self, account_id: str, mailbox: str, uid: int, seen: bool) -> None:
        await self._enter("mark_seen", account_id, mailbox, uid, seen)
        stored = self._mailbox(account_id, mailbox)
        for index, header in enumerate(stored):
            if header.uid == uid:
                stored[index] = header.model_copy(update={"seen": seen})

    def subscribe_new_mail(self, callback: NewMailCallback) -> Unsubscribe:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # --- internals --------------------------------------------------------

    def _mailbox(self, account_id: str, mailbox: str) -> list[EmailHeader]:
        try:
            return self.mailboxes[(account_id, mailbox)]
        except KeyError:
            raise MailboxNotFoundError(f"Mailbox {mailbox!r} does not exist for {account_id!r}") from None

    async def _enter(self, op: str, *args: Any) -> None:
        self.calls.append((op, args))
        logger.debug("gateway_call", op=op, args=args)

        if self.gate is not None:
            await self.gate.wait()

        if self.fail_next is not None:
            exc, self.fail_next = self.fail_next, None
            raise exc
