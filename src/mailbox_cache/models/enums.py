"""Enumerations shared across the cache, coordinator and selection machine."""

from enum import Enum


class EntryState(str, Enum):
    """State of a cached mailbox entry. A missing entry means "not yet loaded"."""

    LOADED = "loaded"
    FAILED = "failed"


class LoadOutcome(str, Enum):
    """Result of a coordinator load request."""

    LOADED = "loaded"
    SKIPPED = "skipped"
    FAILED = "failed"


class LoadKind(str, Enum):
    """Kind of load holding a mailbox's load guard."""

    FIRST_LOAD = "first_load"
    JUMP = "jump"
    GROW = "grow"


class ErrorKind(str, Enum):
    """Classification of gateway failures."""

    CONNECTION = "connection"
    AUTHENTICATION = "authentication"
    NETWORK = "network"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


class SelectionMode(str, Enum):
    """Interaction mode of the list view."""

    IDLE = "idle"
    VIEWING = "viewing"
    MULTI_SELECT = "multi_select"
