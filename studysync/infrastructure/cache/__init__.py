from studysync.infrastructure.cache.result_cache import (
    CacheStats,
    EvictionPolicy,
    LRUEvictionPolicy,
    ResultCache,
    make_cache_key,
)

__all__ = [
    "CacheStats",
    "EvictionPolicy",
    "LRUEvictionPolicy",
    "ResultCache",
    "make_cache_key",
]
