"""Unit tests for the per-key load guard."""

import pytest

from mailbox_cache.cache import CacheKey
from mailbox_cache.exceptions import LeaseError
from mailbox_cache.models import LoadKind
from mailbox_cache.pagination import LoadGuard


def test_second_acquire_for_same_key_is_refused(key) -> None:
    guard = LoadGuard()

    lease = guard.try_acquire(key, LoadKind.JUMP, page=2)

    assert lease is not None
    assert guard.try_acquire(key, LoadKind.GROW) is None
    assert guard.is_loading(key)
    assert guard.is_loading(key, LoadKind.JUMP)
    assert not guard.is_loading(key, LoadKind.GROW)
    assert guard.pending_page(key) == 2


def test_keys_are_independent(key) -> None:
    guard = LoadGuard()
    other = CacheKey(key.account_id, "Sent")

    assert guard.try_acquire(key, LoadKind.JUMP, page=1) is not None
    assert guard.try_acquire(other, LoadKind.JUMP, page=1) is not None


def test_release_frees_the_key(key) -> None:
    guard = LoadGuard()
    lease = guard.try_acquire(key, LoadKind.FIRST_LOAD, page=1)

    guard.release(lease)

    assert not guard.is_loading(key)
    assert guard.pending_page(key) is None
    assert guard.try_acquire(key, LoadKind.GROW) is not None


def test_stale_lease_cannot_release_a_newer_holder(key) -> None:
    guard = LoadGuard()
    stale = guard.try_acquire(key, LoadKind.JUMP, page=2)
    guard.release(stale)
    current = guard.try_acquire(key, LoadKind.JUMP, page=3)

    with pytest.raises(LeaseError):
        guard.release(stale)

    assert guard.lease_for(key) == current


def test_none_key_is_never_loading() -> None:
    guard = LoadGuard()

    assert guard.is_loading(None) is False
    assert guard.pending_page(None) is None
