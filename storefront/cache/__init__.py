from storefront.cache.entry_store import CacheEntry, EntryStore
from storefront.cache.gate import CacheGate, CacheRequest, CacheResult, CacheStatus
from storefront.cache.policy import EvictionPolicy, TTLPolicy
from storefront.cache.popularity import PopularityTracker
from storefront.cache.response_cache import ResponseCache, route_key
from storefront.cache.stats import CacheStats, StatsAggregator

__all__ = [
    "CacheEntry",
    "CacheGate",
    "CacheRequest",
    "CacheResult",
    "CacheStats",
    "CacheStatus",
    "EntryStore",
    "EvictionPolicy",
    "PopularityTracker",
    "ResponseCache",
    "StatsAggregator",
    "TTLPolicy",
    "route_key",
]
