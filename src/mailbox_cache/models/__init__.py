"""Data models for Mailbox Cache.

This module contains Pydantic models for cached records, snapshots and
error state exposed to the presentation layer.
"""

from pydantic import BaseModel, ConfigDict, Field

from mailbox_cache.models.cache_entry import MailboxCacheEntry
from mailbox_cache.models.email_header import EmailHeader
from mailbox_cache.models.enums import (
    EntryState,
    ErrorKind,
    LoadKind,
    LoadOutcome,
    SelectionMode,
)


class MailboxListing(BaseModel):
    """First-load result of selecting a mailbox on the gateway."""

    records: list[EmailHeader] = Field(default_factory=list, description="Newest headers first")
    total_count: int = Field(ge=0, description="Authoritative number of messages in the mailbox")


class LoadError(BaseModel):
    """Classified gateway failure stored as the current error state."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind = Field(description="Failure classification")
    message: str = Field(description="Original failure message")
    guidance: str = Field(description="Human-readable hint for the user")


class SelectionState(BaseModel):
    """Snapshot of the list view's selection."""

    model_config = ConfigDict(frozen=True)

    selected_uids: frozenset[int] = Field(default_factory=frozenset)
    open_uid: int | None = Field(default=None, description="Row open for detail display")
    cursor_index: int = Field(default=-1, ge=-1, description="Keyboard cursor row, -1 if none")

    @property
    def multi_select_active(self) -> bool:
        return len(self.selected_uids) > 0

    @property
    def mode(self) -> SelectionMode:
        if self.selected_uids:
            return SelectionMode.MULTI_SELECT
        if self.open_uid is not None:
            return SelectionMode.VIEWING
        return SelectionMode.IDLE


__all__ = [
    "EmailHeader",
    "EntryState",
    "ErrorKind",
    "LoadError",
    "LoadKind",
    "LoadOutcome",
    "MailboxCacheEntry",
    "MailboxListing",
    "SelectionMode",
    "SelectionState",
]
