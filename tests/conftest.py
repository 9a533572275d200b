"""Pytest configuration and shared fixtures."""

import pytest

ACCOUNT = "user@example.com"
MAILBOX = "INBOX"


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo global structlog configuration (e.g. from CLI tests) after each test.

    ``configure_logging`` binds the logger to the current ``sys.stderr``, which
    under pytest is a per-test capture stream that is closed afterwards.
    """
    import structlog

    yield
    structlog.reset_defaults()


@pytest.fixture
def settings():
    """Provide settings with the reference page size."""
    from mailbox_cache.config import Settings

    return Settings(page_size=50, log_level="DEBUG")


@pytest.fixture
def gateway():
    """Provide an in-memory gateway holding a 120-message inbox (uids 1..120)."""
    from mailbox_cache.gateway import InMemoryGateway

    gw = InMemoryGateway()
    gw.seed(ACCOUNT, MAILBOX, 120)
    return gw


@pytest.fixture
def key():
    """Provide the cache key of the seeded inbox."""
    from mailbox_cache.cache import CacheKey

    return CacheKey(account_id=ACCOUNT, mailbox=MAILBOX)


@pytest.fixture
def cache():
    from mailbox_cache.cache import HeaderCache

    return HeaderCache()


@pytest.fixture
def coordinator(gateway, cache, settings):
    from mailbox_cache.pagination import PaginationCoordinator

    return PaginationCoordinator(gateway, cache, settings=settings)


@pytest.fixture
def session(gateway, settings):
    """Provide a session with the seeded inbox selected (not yet loaded)."""
    from mailbox_cache.session import MailboxSession

    s = MailboxSession(gateway, settings=settings)
    s.select(ACCOUNT, MAILBOX)
    return s


@pytest.fixture
def make_headers():
    """Factory for headers with explicit uids."""
    from mailbox_cache.models import EmailHeader

    def _make(*uids: int):
        return [EmailHeader(uid=uid, subject=f"Subject {uid}", sender=f"s{uid}@example.com") for uid in uids]

    return _make
