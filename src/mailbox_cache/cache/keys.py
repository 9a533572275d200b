"""Cache key derivation for (account, mailbox) pairs."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheKey:
    """Identifies one mailbox within one account."""

    account_id: str
    mailbox: str

    def __str__(self) -> str:
        return f"{self.account_id}-{self.mailbox}"


def derive_key(account_id: str | None, mailbox: str | None) -> CacheKey | None:
    """Compose a cache key, or return None when either component is missing.

    Args:
        account_id: Account identifier.
        mailbox: Full mailbox path (e.g. ``[Gmail]/All Mail``).

    Returns:
        The key, or None if ``account_id`` or ``mailbox`` is None or empty.
    """

    if not account_id or not mailbox:
        return None
    return CacheKey(account_id=account_id, mailbox=mailbox)
