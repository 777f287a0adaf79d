"""
Adapters package for the trips data layer.

Contains the HTTP client for the remote store and the entity gateways built
on it. These adapters encapsulate:

- Base URL, auth headers and the store's filter dialect
- Retry policies for idempotent reads
- Error handling that maps to shared errors

Keep adapters thin and stateless outside of explicit calls.
"""

from .store_client import StoreClient, build_query_params, parse_content_range
from .trip_gateway import TripGateway, build_trip_filter_params, compute_trip_stats
from .company_gateway import CompanyGateway

__all__ = [
    "StoreClient",
    "TripGateway",
    "CompanyGateway",
    "build_query_params",
    "build_trip_filter_params",
    "compute_trip_stats",
    "parse_content_range",
]
