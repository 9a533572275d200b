"""Cached listing state for one mailbox."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field

from mailbox_cache.models.email_header import EmailHeader
from mailbox_cache.models.enums import EntryState


class MailboxCacheEntry(BaseModel):
    """Immutable snapshot of one mailbox's cached headers and paging metadata.

    The cache swaps whole entries, so a reader holding an entry always sees a
    consistent ``(current_page, records)`` pair.
    """

    model_config = ConfigDict(frozen=True)

    records: tuple[EmailHeader, ...] = Field(default=(), description="Rows in server order")
    total_count: int | None = Field(
        default=None,
        ge=0,
        description="Authoritative message count, once the gateway has reported one",
    )
    has_more: bool = Field(default=False, description="Whether the last load filled a page")
    current_page: int = Field(default=1, ge=1, description="Page the records belong to")
    state: EntryState = Field(default=EntryState.LOADED)

    @property
    def uids(self) -> frozenset[int]:
        return frozenset(record.uid for record in self.records)

    @property
    def failed(self) -> bool:
        return self.state is EntryState.FAILED

    def total_pages(self, page_size: int) -> int | None:
        """Number of pages implied by ``total_count``; None when the count is unknown."""

        if self.total_count is None:
            return None
        return math.ceil(self.total_count / page_size)
