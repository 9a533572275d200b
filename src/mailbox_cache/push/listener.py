"""Merges gateway "new mail" notifications into the active mailbox.

Notifications arrive through a plain callback; the listener schedules the
fetch on the running event loop. Only the currently active mailbox is
updated. Fetch failures are logged and dropped, and the next explicit reload
reconciles the cache.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import structlog

from mailbox_cache.cache import CacheKey, HeaderCache, derive_key
from mailbox_cache.config import Settings
from mailbox_cache.gateway import MailGateway, Unsubscribe

logger = structlog.get_logger()


class PushUpdateListener:
    """Subscribes to new-mail notifications and prepends the new headers."""

    def __init__(
        self,
        gateway: MailGateway,
        cache: HeaderCache,
        active_key: Callable[[], CacheKey | None],
        settings: Settings | None = None,
    ) -> None:
        """Initialize the listener.

        Args:
            gateway: Gateway providing the notification stream and fetches.
            cache: Shared header cache.
            active_key: Returns the key of the mailbox currently on screen.
            settings: Application settings. If None, uses default settings.
        """
        from mailbox_cache.config import get_settings

        self.settings = settings or get_settings()
        self.gateway = gateway
        self.cache = cache
        self._active_key = active_key
        self._unsubscribe: Unsubscribe | None = None
        self._tasks: set[asyncio.Task[int]] = set()

    @property
    def running(self) -> bool:
        return self._unsubscribe is not None

    def start(self) -> None:
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self.gateway.subscribe_new_mail(self._on_new_mail)
        logger.info("push_listener_started")

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            logger.info("push_listener_stopped", pending=len(self._tasks))
        for task in list(self._tasks):
            task.cancel()

    async def drain(self) -> None:
        """Wait for every scheduled push fetch to finish."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_new_mail(self, account_id: str, mailbox: str, new_count: int) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                "push_update_without_event_loop",
                account_id=account_id,
                mailbox=mailbox,
                new_count=new_count,
            )
            return

        task = loop.create_task(self.handle_new_mail(account_id, mailbox, new_count))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def handle_new_mail(self, account_id: str, mailbox: str, new_count: int) -> int:
        """Fetch and prepend ``new_count`` newest headers if the mailbox is active.

        Returns:
            Number of rows added to the cache.
        """

        key = derive_key(account_id, mailbox)
        if key is None or key != self._active_key() or new_count <= 0:
            logger.debug(
                "push_update_ignored",
                account_id=account_id,
                mailbox=mailbox,
                new_count=new_count,
            )
            return 0

        entry = self.cache.get(key)
        if entry is None:
            # Not loaded yet; the first load will bring these rows.
            return 0

        if self.settings.suppress_push_off_first_page and entry.current_page != 1:
            logger.info("push_update_suppressed", key=str(key), page=entry.current_page)
            return 0

        generation = self.cache.generation(key)
        try:
            records = list(await self.gateway.list_page(account_id, mailbox, 0, new_count))
        except Exception as exc:  # noqa: BLE001
            logger.warning("push_update_fetch_failed", key=str(key), error=str(exc))
            return 0

        if key != self._active_key() or self.cache.generation(key) != generation:
            logger.debug("push_update_stale", key=str(key))
            return 0

        added = self.cache.prepend(key, records)
        total = self.cache.total_count(key)
        if added and total is not None:
            self.cache.set_total_count(key, total + added)
        logger.info("push_update_merged", key=str(key), announced=new_count, added=added)
        return added
