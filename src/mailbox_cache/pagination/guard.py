"""Per-mailbox load guard.

At most one page load may be in flight per cache key. Acquiring the guard
returns a lease; only that lease can release it again.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field

import structlog

from mailbox_cache.cache.keys import CacheKey
from mailbox_cache.exceptions import LeaseError
from mailbox_cache.models import LoadKind

logger = structlog.get_logger()


@dataclass(frozen=True)
class LoadLease:
    """Proof of holding the load guard for one key."""

    key: CacheKey
    kind: LoadKind
    page: int | None = None
    token: str = field(default_factory=lambda: uuid.uuid4().hex)


class LoadGuard:
    """Process-wide registry of in-flight loads.

    The check-and-set in ``try_acquire`` runs under a lock so the guard holds
    even when callers live on different threads.
    """

    def __init__(self) -> None:
        self._leases: dict[CacheKey, LoadLease] = {}
        self._lock = threading.Lock()

    def try_acquire(self, key: CacheKey, kind: LoadKind, page: int | None = None) -> LoadLease | None:
        """Take the guard for ``key``.

        Args:
            key: Mailbox being loaded.
            kind: What kind of load is starting.
            page: Requested page for page jumps and first loads.

        Returns:
            A lease, or None if another load for ``key`` is in flight.
        """

        with self._lock:
            held = self._leases.get(key)
            if held is not None:
                logger.debug(
                    "load_guard_busy",
                    key=str(key),
                    requested=kind.value,
                    held_by=held.kind.value,
                    held_page=held.page,
                )
                return None

            lease = LoadLease(key=key, kind=kind, page=page)
            self._leases[key] = lease
            return lease

    def release(self, lease: LoadLease) -> None:
        """Release the guard held by ``lease``.

        Raises:
            LeaseError: If ``lease`` is not the one currently holding its key.
        """

        with self._lock:
            held = self._leases.get(lease.key)
            if held is None or held.token != lease.token:
                raise LeaseError(f"Lease {lease.token} does not hold the guard for {lease.key}")
            del self._leases[lease.key]

    def lease_for(self, key: CacheKey | None) -> LoadLease | None:
        if key is None:
            return None
        with self._lock:
            return self._leases.get(key)

    def is_loading(self, key: CacheKey | None, kind: LoadKind | None = None) -> bool:
        lease = self.lease_for(key)
        if lease is None:
            return False
        return kind is None or lease.kind is kind

    def pending_page(self, key: CacheKey | None) -> int | None:
        """Page currently being fetched for ``key``, for a speculative UI indicator."""

        lease = self.lease_for(key)
        return lease.page if lease is not None else None
