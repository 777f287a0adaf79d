"""
Trips caching package.

Provides the keyed query cache that sits between the view layer and the
entity gateways. Prefer short-lived entries and explicit invalidation.
"""

from .query_keys import CompanyKeys, QueryKey, TripKeys
from .query_cache import CacheEntry, InFlightRequest, QueryCache, QueryState

__all__ = [
    "CacheEntry",
    "CompanyKeys",
    "InFlightRequest",
    "QueryCache",
    "QueryKey",
    "QueryState",
    "TripKeys",
]
