"""In-memory mailbox header cache.

The cache owns no fetching logic; it only offers merge, replace and removal
primitives over immutable per-mailbox entries.
"""

from .header_cache import HeaderCache
from .keys import CacheKey, derive_key

__all__ = ["CacheKey", "HeaderCache", "derive_key"]
