"""Unit tests for the mailbox session facade."""

from __future__ import annotations

import asyncio

import pytest

from mailbox_cache.cache import HeaderCache
from mailbox_cache.exceptions import AuthenticationError, GatewayConnectionError
from mailbox_cache.models import ErrorKind, LoadOutcome, SelectionMode
from mailbox_cache.session import MailboxSession

ACCOUNT = "user@example.com"
MAILBOX = "INBOX"


class TestActiveMailbox:
    def test_select_derives_key(self, session, key) -> None:
        assert session.key == key
        assert session.account_id == ACCOUNT
        assert session.mailbox == MAILBOX

    def test_incomplete_selection_has_no_key(self, session) -> None:
        assert session.select(ACCOUNT, "") is None
        assert session.rows == ()
        assert session.current_page is None

    def test_key_change_resets_selection_synchronously(self, session) -> None:
        session.toggle_checkbox(3)
        session.open_row(4)
        session.move_cursor(1)

        session.select(ACCOUNT, "Sent")

        state = session.selection
        assert state.mode is SelectionMode.IDLE
        assert state.selected_uids == frozenset()
        assert state.open_uid is None
        assert state.cursor_index == -1

    def test_reselecting_same_mailbox_keeps_selection(self, session) -> None:
        session.toggle_checkbox(3)

        session.select(ACCOUNT, MAILBOX)

        assert session.selection.selected_uids == frozenset({3})

    @pytest.mark.asyncio
    async def test_remove_account(self, session, key) -> None:
        await session.open_mailbox()

        assert session.remove_account(ACCOUNT) == 1
        assert session.key is None
        assert session.cache.get(key) is None

    @pytest.mark.asyncio
    async def test_remove_account_during_jump_stays_removed(self, session, gateway, key) -> None:
        await session.open_mailbox()
        gateway.gate = asyncio.Event()

        jump = asyncio.create_task(session.jump(2))
        await asyncio.sleep(0)
        session.remove_account(ACCOUNT)
        assert session.cache.get(key) is None
        gateway.gate.set()

        assert await jump is LoadOutcome.SKIPPED
        assert session.cache.get(key) is None

    @pytest.mark.asyncio
    async def test_remove_account_drops_its_errors(self, session, gateway, key) -> None:
        gateway.fail_next = AuthenticationError("AUTHENTICATIONFAILED")
        await session.open_mailbox()
        assert session.coordinator.error_for(key) is not None

        session.remove_account(ACCOUNT)

        assert session.coordinator.error_for(key) is None


class TestLoading:
    @pytest.mark.asyncio
    async def test_open_mailbox_exposes_entry(self, session) -> None:
        assert session.has_loaded_once is False

        assert await session.open_mailbox() is LoadOutcome.LOADED

        assert session.has_loaded_once is True
        assert len(session.rows) == 50
        assert session.current_page == 1
        assert session.total_pages == 3
        assert session.total_count == 120
        assert session.has_more is True
        assert session.loading is False
        assert session.fetching_more is False
        assert session.error is None

    @pytest.mark.asyncio
    async def test_refresh_reloads_from_gateway(self, session, gateway) -> None:
        await session.open_mailbox()
        await session.grow_by_scroll()
        assert len(session.rows) == 100

        assert await session.refresh() is LoadOutcome.LOADED

        assert len(session.rows) == 50
        assert [op for op, _ in gateway.calls].count("select_mailbox") == 2

    @pytest.mark.asyncio
    async def test_failed_open_surfaces_guidance(self, session, gateway) -> None:
        gateway.fail_next = AuthenticationError("AUTHENTICATIONFAILED")

        assert await session.open_mailbox() is LoadOutcome.FAILED

        assert session.has_loaded_once is True
        assert session.rows == ()
        assert session.error.kind is ErrorKind.AUTHENTICATION
        assert "password" in session.error.guidance

    @pytest.mark.asyncio
    async def test_sessions_can_share_a_cache(self, gateway, settings) -> None:
        shared = HeaderCache()
        first = MailboxSession(gateway, cache=shared, settings=settings)
        second = MailboxSession(gateway, cache=shared, settings=settings)
        first.select(ACCOUNT, MAILBOX)
        second.select(ACCOUNT, MAILBOX)

        await first.open_mailbox()

        assert await second.open_mailbox() is LoadOutcome.SKIPPED
        assert len(second.rows) == 50


class TestFiltering:
    @pytest.mark.asyncio
    async def test_filtered_rows_narrow_by_query(self, session) -> None:
        await session.open_mailbox()

        session.search_query = "message 1"

        uids = [row.uid for row in session.filtered_rows]
        assert uids == [1] + list(range(10, 20))

    @pytest.mark.asyncio
    async def test_select_all_uses_filtered_view(self, session) -> None:
        await session.open_mailbox()
        session.search_query = "sender0@"

        state = session.select_all()

        assert state.selected_uids == frozenset(row.uid for row in session.filtered_rows)
        assert len(state.selected_uids) < len(session.rows)

    @pytest.mark.asyncio
    async def test_toggle_select_all(self, session) -> None:
        await session.open_mailbox()

        assert len(session.toggle_select_all().selected_uids) == 50
        assert session.toggle_select_all().mode is SelectionMode.IDLE

    @pytest.mark.asyncio
    async def test_blank_query_shows_everything(self, session) -> None:
        await session.open_mailbox()
        session.search_query = "   "

        assert len(session.filtered_rows) == 50


class TestActions:
    @pytest.mark.asyncio
    async def test_delete_selected_after_confirmation(self, session, gateway) -> None:
        await session.open_mailbox()
        session.toggle_checkbox(2)
        session.toggle_checkbox(3)

        removed = await session.delete_selected()

        assert removed == 2
        assert 2 not in {row.uid for row in session.rows}
        assert session.total_count == 118
        assert session.selection.mode is SelectionMode.IDLE
        assert gateway.calls[-1] == ("delete_by_uid", (ACCOUNT, MAILBOX, (2, 3)))

    @pytest.mark.asyncio
    async def test_failed_delete_leaves_cache_untouched(self, session, gateway) -> None:
        await session.open_mailbox()
        before = session.entry
        session.toggle_checkbox(2)
        gateway.fail_next = GatewayConnectionError("ECONNREFUSED")

        assert await session.delete_selected() == 0

        assert session.entry is before
        assert session.selection.selected_uids == frozenset({2})
        assert session.error.kind is ErrorKind.CONNECTION

    @pytest.mark.asyncio
    async def test_delete_without_selection_is_noop(self, session, gateway) -> None:
        await session.open_mailbox()
        calls = len(gateway.calls)

        assert await session.delete_selected() == 0
        assert len(gateway.calls) == calls

    @pytest.mark.asyncio
    async def test_successful_load_clears_action_error(self, session, gateway) -> None:
        await session.open_mailbox()
        session.toggle_checkbox(2)
        gateway.fail_next = GatewayConnectionError("ECONNREFUSED")
        await session.delete_selected()

        await session.jump(2)

        assert session.error is None

    @pytest.mark.asyncio
    async def test_mark_seen_updates_row_and_flags(self, session) -> None:
        await session.open_mailbox()

        row = await session.mark_seen(1)

        assert row.seen is True
        assert "\\Seen" in row.flags
        assert session.rows[0].seen is True

        row = await session.mark_seen(1, seen=False)
        assert "\\Seen" not in row.flags

    @pytest.mark.asyncio
    async def test_mark_seen_failure(self, session, gateway) -> None:
        await session.open_mailbox()
        gateway.fail_next = AuthenticationError("token expired")

        assert await session.mark_seen(1) is None
        assert session.rows[0].seen is False
        assert session.error.kind is ErrorKind.AUTHENTICATION


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_context_manager_subscribes_to_push_updates(self, gateway, settings) -> None:
        async with MailboxSession(gateway, settings=settings) as session:
            assert gateway.subscriber_count == 1
            session.select(ACCOUNT, MAILBOX)
            await session.open_mailbox()

            gateway.deliver_new_mail(ACCOUNT, MAILBOX, 2)
            await session.push_listener.drain()

            assert len(session.rows) == 52

        assert gateway.subscriber_count == 0


class TestReadingPane:
    @pytest.mark.asyncio
    async def test_open_and_close_row(self, session) -> None:
        await session.open_mailbox()

        assert session.open_row(5).mode is SelectionMode.VIEWING
        assert session.close_row().mode is SelectionMode.IDLE

    @pytest.mark.asyncio
    async def test_cursor_follows_filtered_rows(self, session) -> None:
        await session.open_mailbox()
        session.search_query = "message 1"

        assert session.move_cursor(1) == 0
        assert session.move_cursor(100) == len(session.filtered_rows) - 1
