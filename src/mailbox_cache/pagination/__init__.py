"""Page-jump and scroll-growth loading with a per-mailbox load guard."""

from .coordinator import PaginationCoordinator
from .guard import LoadGuard, LoadLease

__all__ = ["LoadGuard", "LoadLease", "PaginationCoordinator"]
