"""Pagination coordinator.

Drives the three kinds of load against the header cache:

- first load: select the mailbox and cache its first page plus total count;
- page jump: replace the visible rows with one specific page;
- scroll growth: append the next chunk to the visible feed.

Every load holds the per-key ``LoadGuard`` for its whole duration and releases
it in a ``finally`` block. Gateway failures are classified, logged and stored
as the key's error state; they never propagate to the caller.
"""

from __future__ import annotations

import structlog

from mailbox_cache.cache import CacheKey, HeaderCache
from mailbox_cache.config import Settings
from mailbox_cache.exceptions import ValidationError
from mailbox_cache.gateway import MailGateway, classify_error
from mailbox_cache.models import LoadError, LoadKind, LoadOutcome, MailboxCacheEntry
from mailbox_cache.pagination.guard import LoadGuard

logger = structlog.get_logger()


class PaginationCoordinator:
    """Race-safe page loading for cached mailboxes."""

    def __init__(
        self,
        gateway: MailGateway,
        cache: HeaderCache,
        guard: LoadGuard | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            gateway: Mail gateway used for fetching.
            cache: Shared header cache; all mutations go through it.
            guard: Load guard. If None, a private one is created.
            settings: Application settings. If None, uses default settings.
        """
        from mailbox_cache.config import get_settings

        self.settings = settings or get_settings()
        self.gateway = gateway
        self.cache = cache
        self.guard = guard or LoadGuard()
        self._errors: dict[CacheKey, LoadError] = {}
        logger.debug("pagination_coordinator_initialized", page_size=self.page_size)

    @property
    def page_size(self) -> int:
        return self.settings.page_size

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def current_page(self, key: CacheKey | None) -> int | None:
        entry = self.cache.get(key)
        return entry.current_page if entry is not None else None

    def total_pages(self, key: CacheKey | None) -> int | None:
        entry = self.cache.get(key)
        return entry.total_pages(self.page_size) if entry is not None else None

    def is_loading(self, key: CacheKey | None, kind: LoadKind | None = None) -> bool:
        return self.guard.is_loading(key, kind)

    def pending_page(self, key: CacheKey | None) -> int | None:
        return self.guard.pending_page(key)

    def error_for(self, key: CacheKey | None) -> LoadError | None:
        if key is None:
            return None
        return self._errors.get(key)

    def set_error(self, key: CacheKey | None, error: LoadError) -> None:
        if key is not None:
            self._errors[key] = error

    def clear_error(self, key: CacheKey | None) -> None:
        if key is not None:
            self._errors.pop(key, None)

    def clear_account_errors(self, account_id: str) -> int:
        """Drop stored errors for every mailbox of ``account_id``."""

        doomed = [key for key in self._errors if key.account_id == account_id]
        for key in doomed:
            del self._errors[key]
        return len(doomed)

    # ------------------------------------------------------------------
    # Loads
    # ------------------------------------------------------------------

    async def load_first_page(self, key: CacheKey | None, *, force: bool = False) -> LoadOutcome:
        """Select the mailbox on the gateway and cache its first page.

        Args:
            key: Mailbox to load.
            force: Reload even if the key is already cached (refresh).

        Returns:
            LoadOutcome: ``skipped`` if already cached or another load is in flight.
        """

        if key is None:
            return LoadOutcome.SKIPPED

        if not force and self.cache.get(key) is not None:
            logger.debug("first_load_cached", key=str(key))
            return LoadOutcome.SKIPPED

        lease = self.guard.try_acquire(key, LoadKind.FIRST_LOAD, page=1)
        if lease is None:
            return LoadOutcome.SKIPPED

        if force:
            self.cache.clear(key)
        generation = self.cache.generation(key)
        try:
            logger.info("first_load_started", key=str(key), limit=self.page_size)
            listing = await self.gateway.select_mailbox(key.account_id, key.mailbox, self.page_size)
        except Exception as exc:  # noqa: BLE001
            if self._cleared_since(key, generation, "first_load"):
                return LoadOutcome.SKIPPED
            self.cache.mark_failed(key)
            self.cache.set_total_count(key, 0)
            self._record_failure(key, exc, operation="first_load", page=1)
            return LoadOutcome.FAILED
        else:
            if self._cleared_since(key, generation, "first_load"):
                return LoadOutcome.SKIPPED
            records = list(listing.records)
            self.cache.replace(
                key,
                records,
                total_count=listing.total_count,
                has_more=len(records) == self.page_size,
                current_page=1,
            )
            self.clear_error(key)
            logger.info(
                "first_load_completed",
                key=str(key),
                count=len(records),
                total_count=listing.total_count,
            )
            return LoadOutcome.LOADED
        finally:
            self.guard.release(lease)

    async def jump(self, key: CacheKey | None, page: int) -> LoadOutcome:
        """Replace the visible rows of ``key`` with page ``page``.

        Out-of-range and repeated requests are silent no-ops. The page number
        becomes visible in the same cache swap that commits the page's rows.

        Args:
            key: Mailbox to page.
            page: 1-based page number.

        Returns:
            LoadOutcome: Result of the request.
        """

        if key is None:
            return LoadOutcome.SKIPPED

        entry = self.cache.get(key)
        try:
            self._validate_page(entry, page)
        except ValidationError as exc:
            logger.debug("page_jump_rejected", key=str(key), page=page, reason=str(exc))
            return LoadOutcome.SKIPPED

        if entry is not None and not entry.failed and entry.current_page == page:
            logger.debug("page_jump_noop", key=str(key), page=page)
            return LoadOutcome.SKIPPED

        lease = self.guard.try_acquire(key, LoadKind.JUMP, page=page)
        if lease is None:
            return LoadOutcome.SKIPPED

        offset = (page - 1) * self.page_size
        total_count = entry.total_count if entry is not None else None
        generation = self.cache.generation(key)
        try:
            logger.info("page_jump_started", key=str(key), page=page, offset=offset)
            records = list(
                await self.gateway.list_page(key.account_id, key.mailbox, offset, self.page_size)
            )
        except Exception as exc:  # noqa: BLE001
            if self._cleared_since(key, generation, "page_jump"):
                return LoadOutcome.SKIPPED
            self.cache.mark_failed(key)
            self._record_failure(key, exc, operation="page_jump", page=page)
            return LoadOutcome.FAILED
        else:
            if self._cleared_since(key, generation, "page_jump"):
                return LoadOutcome.SKIPPED
            self.cache.replace(
                key,
                records,
                total_count=total_count,
                has_more=len(records) == self.page_size,
                current_page=page,
            )
            self.clear_error(key)
            logger.info("page_jump_completed", key=str(key), page=page, count=len(records))
            return LoadOutcome.LOADED
        finally:
            self.guard.release(lease)

    async def grow_by_scroll(self, key: CacheKey | None) -> LoadOutcome:
        """Append the next chunk after the visible rows of ``key``.

        After a page jump the feed continues from the end of that page.
        Failures leave the cached rows untouched.

        Returns:
            LoadOutcome: Result of the request.
        """

        if key is None:
            return LoadOutcome.SKIPPED

        entry = self.cache.get(key)
        if entry is None or not entry.has_more:
            logger.debug("scroll_growth_skipped", key=str(key), has_more=bool(entry and entry.has_more))
            return LoadOutcome.SKIPPED

        lease = self.guard.try_acquire(key, LoadKind.GROW)
        if lease is None:
            return LoadOutcome.SKIPPED

        offset = (entry.current_page - 1) * self.page_size + len(entry.records)
        generation = self.cache.generation(key)
        try:
            logger.info("scroll_growth_started", key=str(key), offset=offset)
            records = list(
                await self.gateway.list_page(key.account_id, key.mailbox, offset, self.page_size)
            )
        except Exception as exc:  # noqa: BLE001
            self._record_failure(key, exc, operation="scroll_growth", page=None)
            return LoadOutcome.FAILED
        else:
            if self._cleared_since(key, generation, "scroll_growth"):
                return LoadOutcome.SKIPPED
            added = self.cache.append(key, records)
            self.cache.set_has_more(key, len(records) == self.page_size)
            self.clear_error(key)
            logger.info("scroll_growth_completed", key=str(key), fetched=len(records), added=added)
            return LoadOutcome.LOADED
        finally:
            self.guard.release(lease)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _validate_page(self, entry: MailboxCacheEntry | None, page: int) -> None:
        if page < 1:
            raise ValidationError(f"Page {page} is below the first page")

        if entry is None or not entry.total_count:
            return

        last_page = entry.total_pages(self.page_size) or 1
        if page > last_page:
            raise ValidationError(f"Page {page} is beyond the last page {last_page}")

    def _cleared_since(self, key: CacheKey, generation: int, operation: str) -> bool:
        # The key or its account was cleared while the fetch was in flight.
        if self.cache.generation(key) == generation:
            return False
        logger.info(f"{operation}_discarded", key=str(key))
        return True

    def _record_failure(
        self,
        key: CacheKey,
        exc: Exception,
        *,
        operation: str,
        page: int | None,
    ) -> LoadError:
        error = classify_error(exc)
        self._errors[key] = error
        logger.exception(
            f"{operation}_failed",
            key=str(key),
            page=page,
            error_kind=error.kind.value,
            error=error.message,
        )
        return error
