"""Mailbox session: the surface consumed by the presentation layer.

A session owns the active (account, mailbox) selection, the list view's
selection machine and search query, and routes every cache mutation through
one shared ``HeaderCache`` via the pagination coordinator and push listener.
"""

from __future__ import annotations

from types import TracebackType

import structlog

from mailbox_cache.cache import CacheKey, HeaderCache, derive_key
from mailbox_cache.config import Settings
from mailbox_cache.gateway import MailGateway, classify_error
from mailbox_cache.models import (
    EmailHeader,
    LoadError,
    LoadKind,
    LoadOutcome,
    MailboxCacheEntry,
    SelectionState,
)
from mailbox_cache.models.email_header import SEEN_FLAG
from mailbox_cache.pagination import LoadGuard, PaginationCoordinator
from mailbox_cache.push import PushUpdateListener
from mailbox_cache.selection import SelectionMachine

logger = structlog.get_logger()


class MailboxSession:
    """Coordinates cache, pagination, selection and push updates for one view."""

    def __init__(
        self,
        gateway: MailGateway,
        cache: HeaderCache | None = None,
        guard: LoadGuard | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            gateway: Mail gateway.
            cache: Header cache to share with other sessions. If None, a new one is created.
            guard: Load guard to share with other sessions. If None, a new one is created.
            settings: Application settings. If None, uses default settings.
        """
        from mailbox_cache.config import get_settings

        self.settings = settings or get_settings()
        self.gateway = gateway
        self.cache = cache if cache is not None else HeaderCache()
        self.coordinator = PaginationCoordinator(gateway, self.cache, guard, self.settings)
        self.selection_machine = SelectionMachine()
        self.push_listener = PushUpdateListener(
            gateway, self.cache, lambda: self._key, self.settings
        )
        self._account_id: str | None = None
        self._mailbox: str | None = None
        self._key: CacheKey | None = None
        self._search_query = ""
        self._session_error: LoadError | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        self.push_listener.start()

    async def close(self) -> None:
        self.push_listener.stop()
        await self.push_listener.drain()

    async def __aenter__(self) -> MailboxSession:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Active mailbox
    # ------------------------------------------------------------------

    @property
    def account_id(self) -> str | None:
        return self._account_id

    @property
    def mailbox(self) -> str | None:
        return self._mailbox

    @property
    def key(self) -> CacheKey | None:
        return self._key

    def select(self, account_id: str | None, mailbox: str | None) -> CacheKey | None:
        """Make (account, mailbox) the active view.

        The selection is reset in this same call whenever the key changes.
        """

        key = derive_key(account_id, mailbox)
        self._account_id = account_id
        self._mailbox = mailbox
        if key != self._key:
            self._key = key
            self.selection_machine.reset()
            self._session_error = None
            logger.info("mailbox_selected", key=str(key) if key else None)
        return key

    def remove_account(self, account_id: str) -> int:
        """Drop every cached mailbox of ``account_id`` and deselect it if active."""

        dropped = self.cache.clear_account(account_id)
        self.coordinator.clear_account_errors(account_id)
        if self._account_id == account_id:
            self.select(None, None)
        logger.info("account_removed", account_id=account_id, entries=dropped)
        return dropped

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def open_mailbox(self) -> LoadOutcome:
        """Load the first page of the active mailbox unless it is already cached."""

        return self._settle(await self.coordinator.load_first_page(self._key))

    async def refresh(self) -> LoadOutcome:
        """Forget the active mailbox's rows and load its first page again."""

        return self._settle(await self.coordinator.load_first_page(self._key, force=True))

    async def jump(self, page: int) -> LoadOutcome:
        return self._settle(await self.coordinator.jump(self._key, page))

    async def grow_by_scroll(self) -> LoadOutcome:
        return self._settle(await self.coordinator.grow_by_scroll(self._key))

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def delete_selected(self) -> int:
        """Delete the checked rows on the gateway, then from the cache.

        Nothing is removed locally until the gateway confirms. On failure the
        cache is untouched and the error is recorded.

        Returns:
            Number of cached rows removed.
        """

        key = self._key
        uids = sorted(self.selection_machine.selected_uids)
        if key is None or not uids:
            return 0

        try:
            await self.gateway.delete_by_uid(key.account_id, key.mailbox, uids)
        except Exception as exc:  # noqa: BLE001
            self._fail(key, exc, "delete_failed", count=len(uids))
            return 0

        removed = self.cache.remove_by_uid(uids)
        self.selection_machine.prune(uids)
        self._session_error = None
        logger.info("messages_deleted", key=str(key), requested=len(uids), removed=removed)
        return removed

    async def mark_seen(self, uid: int, seen: bool = True) -> EmailHeader | None:
        """Set the ``\\Seen`` flag on the gateway, then on the cached row.

        Returns:
            The updated row, or None if the gateway failed or the row is not cached.
        """

        key = self._key
        if key is None:
            return None

        try:
            await self.gateway.mark_seen(key.account_id, key.mailbox, uid, seen)
        except Exception as exc:  # noqa: BLE001
            self._fail(key, exc, "mark_seen_failed", uid=uid)
            return None

        row = next((r for r in self.rows if r.uid == uid), None)
        if row is None:
            return None
        flags = tuple(f for f in row.flags if f != SEEN_FLAG)
        if seen:
            flags = (*flags, SEEN_FLAG)
        return self.cache.update_header(key, uid, seen=seen, flags=flags)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    @property
    def selection(self) -> SelectionState:
        return self.selection_machine.snapshot()

    def toggle_checkbox(self, uid: int) -> SelectionState:
        return self.selection_machine.toggle_checkbox(uid)

    def select_all(self) -> SelectionState:
        return self.selection_machine.select_all(row.uid for row in self.filtered_rows)

    def deselect_all(self) -> SelectionState:
        return self.selection_machine.deselect_all()

    def toggle_select_all(self) -> SelectionState:
        return self.selection_machine.toggle_select_all(row.uid for row in self.filtered_rows)

    def open_row(self, uid: int) -> SelectionState:
        return self.selection_machine.open_row(uid)

    def close_row(self) -> SelectionState:
        return self.selection_machine.close_row()

    def cancel_selection(self) -> SelectionState:
        return self.selection_machine.cancel_selection()

    def move_cursor(self, delta: int) -> int:
        return self.selection_machine.move_cursor(delta, len(self.filtered_rows))

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def search_query(self) -> str:
        return self._search_query

    @search_query.setter
    def search_query(self, value: str) -> None:
        self._search_query = value or ""

    @property
    def entry(self) -> MailboxCacheEntry | None:
        return self.cache.get(self._key)

    @property
    def rows(self) -> tuple[EmailHeader, ...]:
        return self.cache.records(self._key)

    @property
    def filtered_rows(self) -> tuple[EmailHeader, ...]:
        rows = self.rows
        query = self._search_query.strip()
        if not query:
            return rows
        return tuple(row for row in rows if row.matches(query))

    @property
    def current_page(self) -> int | None:
        return self.coordinator.current_page(self._key)

    @property
    def pending_page(self) -> int | None:
        return self.coordinator.pending_page(self._key)

    @property
    def total_pages(self) -> int | None:
        return self.coordinator.total_pages(self._key)

    @property
    def total_count(self) -> int | None:
        return self.cache.total_count(self._key)

    @property
    def has_more(self) -> bool:
        return self.cache.has_more(self._key)

    @property
    def loading(self) -> bool:
        return self.coordinator.is_loading(self._key) and not self.fetching_more

    @property
    def fetching_more(self) -> bool:
        return self.coordinator.is_loading(self._key, LoadKind.GROW)

    @property
    def has_loaded_once(self) -> bool:
        return self.entry is not None

    @property
    def error(self) -> LoadError | None:
        return self._session_error or self.coordinator.error_for(self._key)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _settle(self, outcome: LoadOutcome) -> LoadOutcome:
        if outcome is LoadOutcome.LOADED:
            self._session_error = None
        return outcome

    def _fail(self, key: CacheKey, exc: Exception, event: str, **context: object) -> None:
        error = classify_error(exc)
        self._session_error = error
        logger.exception(event, key=str(key), error_kind=error.kind.value, error=error.message, **context)
