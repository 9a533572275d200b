"""Selection state machine for the message list.

Modes are derived from two pieces of canonical state:

- ``MULTI_SELECT`` whenever at least one checkbox is ticked;
- ``VIEWING`` when no checkbox is ticked but a row is open;
- ``IDLE`` otherwise.

Because multi-select is derived from the selected set, it can never be active
with an empty selection.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from mailbox_cache.models import SelectionMode, SelectionState

logger = structlog.get_logger()


class SelectionMachine:
    """Tracks checked rows, the open row and the keyboard cursor."""

    def __init__(self) -> None:
        self._selected: set[int] = set()
        self._open_uid: int | None = None
        self._cursor_index = -1

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def selected_uids(self) -> frozenset[int]:
        return frozenset(self._selected)

    @property
    def open_uid(self) -> int | None:
        return self._open_uid

    @property
    def cursor_index(self) -> int:
        return self._cursor_index

    @property
    def multi_select_active(self) -> bool:
        return bool(self._selected)

    @property
    def mode(self) -> SelectionMode:
        return self.snapshot().mode

    def snapshot(self) -> SelectionState:
        return SelectionState(
            selected_uids=frozenset(self._selected),
            open_uid=self._open_uid,
            cursor_index=self._cursor_index,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def toggle_checkbox(self, uid: int) -> SelectionState:
        """Flip ``uid`` in the selection.

        Unchecking the last selected row goes to ``IDLE``; the previously
        open row is not brought back.
        """

        if uid in self._selected:
            self._selected.discard(uid)
            if not self._selected:
                self._open_uid = None
        else:
            self._selected.add(uid)
        return self.snapshot()

    def select_all(self, uids: Iterable[int]) -> SelectionState:
        """Select exactly ``uids``, normally the rows of the filtered view."""

        self._selected = set(uids)
        if not self._selected:
            self._open_uid = None
        return self.snapshot()

    def deselect_all(self) -> SelectionState:
        self._selected.clear()
        self._open_uid = None
        return self.snapshot()

    def toggle_select_all(self, uids: Iterable[int]) -> SelectionState:
        """Header checkbox: clear when everything in ``uids`` is selected, else select them."""

        wanted = set(uids)
        if wanted and wanted <= self._selected:
            return self.deselect_all()
        return self.select_all(wanted)

    def open_row(self, uid: int) -> SelectionState:
        """Open ``uid`` for reading; the checkbox selection is left alone."""

        self._open_uid = uid
        return self.snapshot()

    def close_row(self) -> SelectionState:
        self._open_uid = None
        return self.snapshot()

    def cancel_selection(self) -> SelectionState:
        self._selected.clear()
        self._open_uid = None
        return self.snapshot()

    def reset(self) -> SelectionState:
        """Drop everything; called on every mailbox or account switch."""

        if self._selected or self._open_uid is not None:
            logger.debug("selection_reset", dropped=len(self._selected), open_uid=self._open_uid)
        self._selected.clear()
        self._open_uid = None
        self._cursor_index = -1
        return self.snapshot()

    def prune(self, uids: Iterable[int]) -> SelectionState:
        """Forget rows that no longer exist (e.g. after a delete)."""

        gone = set(uids)
        had_selection = bool(self._selected)
        self._selected -= gone
        if self._open_uid in gone or (had_selection and not self._selected):
            self._open_uid = None
        return self.snapshot()

    def move_cursor(self, delta: int, row_count: int) -> int:
        """Move the keyboard cursor by ``delta`` rows, clamped to the list.

        Returns:
            The new cursor index, -1 when the list is empty.
        """

        if row_count <= 0:
            self._cursor_index = -1
        elif self._cursor_index < 0:
            self._cursor_index = 0 if delta >= 0 else row_count - 1
        else:
            self._cursor_index = max(0, min(row_count - 1, self._cursor_index + delta))
        return self._cursor_index
