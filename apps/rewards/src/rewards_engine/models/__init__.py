from .cache_entry import LocalCacheEntry  # noqa: F401
