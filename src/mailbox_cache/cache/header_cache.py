"""Volatile header cache keyed by (account, mailbox).

Every mutation builds a new frozen ``MailboxCacheEntry`` and swaps it in with a
single dict assignment, so readers never observe a half-updated sequence.
Operations given a ``None`` key are no-ops; reads return empty results.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

import structlog

from mailbox_cache.cache.keys import CacheKey
from mailbox_cache.models import EmailHeader, EntryState, MailboxCacheEntry

logger = structlog.get_logger()


def _unique_new(existing: Iterable[EmailHeader], incoming: Iterable[EmailHeader]) -> list[EmailHeader]:
    # First write wins, including duplicates inside the incoming batch.
    seen = {record.uid for record in existing}
    fresh: list[EmailHeader] = []
    for record in incoming:
        if record.uid in seen:
            continue
        seen.add(record.uid)
        fresh.append(record)
    return fresh


class HeaderCache:
    """In-memory mapping of cache key to mailbox entry."""

    def __init__(self) -> None:
        self._entries: dict[CacheKey, MailboxCacheEntry] = {}
        # Clear stamps; a load compares ``generation(key)`` before and after its fetch.
        self._clock = 0
        self._cleared_at: dict[CacheKey, int] = {}
        self._account_cleared_at: dict[str, int] = {}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: CacheKey | None) -> MailboxCacheEntry | None:
        """Return the current entry for ``key``, or None if it was never loaded."""

        if key is None:
            return None
        return self._entries.get(key)

    def generation(self, key: CacheKey | None) -> int:
        """Return a stamp that changes whenever ``key`` or its account is cleared."""

        if key is None:
            return 0
        return max(
            self._cleared_at.get(key, 0),
            self._account_cleared_at.get(key.account_id, 0),
        )

    def records(self, key: CacheKey | None) -> tuple[EmailHeader, ...]:
        entry = self.get(key)
        return entry.records if entry is not None else ()

    def has_more(self, key: CacheKey | None) -> bool:
        entry = self.get(key)
        return entry.has_more if entry is not None else False

    def total_count(self, key: CacheKey | None) -> int | None:
        entry = self.get(key)
        return entry.total_count if entry is not None else None

    def keys(self) -> list[CacheKey]:
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CacheKey]:
        return iter(list(self._entries))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def replace(
        self,
        key: CacheKey | None,
        records: Iterable[EmailHeader],
        total_count: int | None,
        has_more: bool,
        current_page: int = 1,
    ) -> MailboxCacheEntry | None:
        """Swap in a brand new entry for ``key``.

        Args:
            key: Target mailbox.
            records: Rows in server order.
            total_count: Authoritative message count, or None if unknown.
            has_more: Whether another chunk is expected after these rows.
            current_page: Page these rows belong to.

        Returns:
            The stored entry, or None when ``key`` is None.
        """

        if key is None:
            return None

        entry = MailboxCacheEntry(
            records=tuple(records),
            total_count=total_count,
            has_more=has_more,
            current_page=current_page,
        )
        self._entries[key] = entry
        logger.debug(
            "cache_replaced",
            key=str(key),
            count=len(entry.records),
            page=current_page,
            has_more=has_more,
        )
        return entry

    def append(self, key: CacheKey | None, records: Iterable[EmailHeader]) -> int:
        """Merge ``records`` after the existing rows, skipping known uids.

        Returns:
            Number of rows actually added.
        """

        return self._merge(key, records, at_front=False)

    def prepend(self, key: CacheKey | None, records: Iterable[EmailHeader]) -> int:
        """Merge ``records`` before the existing rows, skipping known uids.

        Returns:
            Number of rows actually added.
        """

        return self._merge(key, records, at_front=True)

    def remove_by_uid(self, uids: Iterable[int]) -> int:
        """Remove rows with the given uids from every cached mailbox.

        Entries that lose rows also lose the same amount from ``total_count``.

        Returns:
            Total number of rows removed across all keys.
        """

        doomed = frozenset(uids)
        if not doomed:
            return 0

        removed_total = 0
        for key, entry in list(self._entries.items()):
            kept = tuple(record for record in entry.records if record.uid not in doomed)
            removed = len(entry.records) - len(kept)
            if removed == 0:
                continue
            total = entry.total_count
            if total is not None:
                total = max(0, total - removed)
            self._entries[key] = entry.model_copy(update={"records": kept, "total_count": total})
            removed_total += removed

        logger.debug("cache_uids_removed", requested=len(doomed), removed=removed_total)
        return removed_total

    def clear(self, key: CacheKey | None) -> None:
        """Forget ``key`` entirely; it reads as "not yet loaded" afterwards."""

        if key is None:
            return
        self._clock += 1
        self._cleared_at[key] = self._clock
        if self._entries.pop(key, None) is not None:
            logger.debug("cache_cleared", key=str(key))

    def clear_account(self, account_id: str) -> int:
        """Forget every mailbox of an account.

        Returns:
            Number of entries dropped.
        """

        self._clock += 1
        self._account_cleared_at[account_id] = self._clock
        # The account stamp supersedes older per-key stamps.
        for stale in [k for k in self._cleared_at if k.account_id == account_id]:
            del self._cleared_at[stale]
        doomed = [key for key in self._entries if key.account_id == account_id]
        for key in doomed:
            del self._entries[key]
        if doomed:
            logger.debug("cache_account_cleared", account_id=account_id, entries=len(doomed))
        return len(doomed)

    def mark_failed(self, key: CacheKey | None) -> MailboxCacheEntry | None:
        """Replace ``key`` with an empty failed entry.

        The total count and the last good page number are kept so the caller
        can still validate and retry page jumps.
        """

        if key is None:
            return None

        previous = self._entries.get(key)
        entry = MailboxCacheEntry(
            records=(),
            total_count=previous.total_count if previous is not None else None,
            has_more=False,
            current_page=previous.current_page if previous is not None else 1,
            state=EntryState.FAILED,
        )
        self._entries[key] = entry
        return entry

    def set_has_more(self, key: CacheKey | None, has_more: bool) -> None:
        self._update(key, has_more=has_more)

    def set_total_count(self, key: CacheKey | None, total_count: int | None) -> None:
        self._update(key, total_count=total_count)

    def update_header(self, key: CacheKey | None, uid: int, **changes: Any) -> EmailHeader | None:
        """Replace one row with a copy carrying ``changes`` (e.g. ``seen=True``).

        Returns:
            The new record, or None if ``uid`` is not cached under ``key``.
        """

        entry = self.get(key)
        if entry is None:
            return None

        updated: EmailHeader | None = None
        rows: list[EmailHeader] = []
        for record in entry.records:
            if record.uid == uid and updated is None:
                updated = record.model_copy(update=changes)
                rows.append(updated)
            else:
                rows.append(record)

        if updated is None:
            return None

        assert key is not None
        self._entries[key] = entry.model_copy(update={"records": tuple(rows)})
        return updated

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _merge(self, key: CacheKey | None, records: Iterable[EmailHeader], *, at_front: bool) -> int:
        if key is None:
            return 0

        entry = self._entries.get(key) or MailboxCacheEntry()
        fresh = _unique_new(entry.records, records)
        if not fresh:
            return 0

        merged = (*fresh, *entry.records) if at_front else (*entry.records, *fresh)
        self._entries[key] = entry.model_copy(
            update={"records": merged, "state": EntryState.LOADED}
        )
        logger.debug(
            "cache_merged",
            key=str(key),
            added=len(fresh),
            position="front" if at_front else "back",
            count=len(merged),
        )
        return len(fresh)

    def _update(self, key: CacheKey | None, **changes: Any) -> None:
        entry = self.get(key)
        if entry is None:
            return
        assert key is not None
        self._entries[key] = entry.model_copy(update=changes)
