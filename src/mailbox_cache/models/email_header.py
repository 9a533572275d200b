"""Header-only email record as cached per mailbox.

Bodies are never cached here; the list view only needs what an IMAP
``FETCH (ENVELOPE FLAGS)`` returns plus an optional preview snippet.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

SEEN_FLAG = "\\Seen"
FLAGGED_FLAG = "\\Flagged"
ATTACHMENT_FLAG = "\\HasAttachment"


class EmailHeader(BaseModel):
    """A single row of a mailbox listing.

    ``uid`` is unique within one mailbox only. Records are immutable; flag
    changes produce a new record that replaces the old one in the cache.
    """

    model_config = ConfigDict(frozen=True)

    uid: int = Field(description="IMAP UID, unique within its mailbox")
    subject: str = Field(default="", description="Subject header")
    sender: str = Field(default="", description="Display form of the From header")
    date: datetime | None = Field(default=None, description="Parsed Date header")
    seen: bool = Field(default=False, description="Whether the \\Seen flag is set")
    flags: tuple[str, ...] = Field(default=(), description="Raw IMAP flags")
    snippet: str | None = Field(default=None, description="Optional body preview")

    @property
    def is_starred(self) -> bool:
        return FLAGGED_FLAG in self.flags

    @property
    def has_attachment(self) -> bool:
        return ATTACHMENT_FLAG in self.flags

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match over subject and sender."""

        needle = query.lower()
        return needle in self.subject.lower() or needle in self.sender.lower()
