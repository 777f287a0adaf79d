"""
Composition root for the trips data layer.

Builds one isolated cache and hands it to the query and mutation layers.
There is no module-level cache: callers own the ``TripDesk`` they build and
pass it down the view tree.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from shared.config import TripDeskConfig, get_config
from shared.logging import configure_logging, get_logger
from shared.retry import RetryConfig

from .adapters.company_gateway import CompanyGateway
from .adapters.store_client import StoreClient
from .adapters.trip_gateway import TripGateway
from .caching.query_cache import QueryCache
from .mutations.coordinator import TripMutations
from .queries import CompanyQueries, TripQueries


@dataclass
class TripDesk:
    """Everything the view layer needs, wired around one cache."""

    config: TripDeskConfig
    cache: QueryCache
    trip_gateway: TripGateway
    company_gateway: CompanyGateway
    trips: TripQueries
    companies: CompanyQueries
    mutations: TripMutations


def build_trip_desk(
    config: Optional[TripDeskConfig] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    clock: Callable[[], float] = time.monotonic,
    configure_logs: bool = True,
) -> TripDesk:
    """Wire a fresh, isolated data layer from configuration."""
    config = config or get_config()
    if configure_logs:
        configure_logging(config.service_name, config.log_level)

    client = StoreClient(
        config.store_url,
        config.store_anon_key,
        timeout=config.request_timeout,
        transport=transport,
    )
    retry_config = RetryConfig(
        max_attempts=config.retry_attempts,
        base_delay=config.retry_base_delay,
        max_delay=config.retry_max_delay,
    )

    trip_gateway = TripGateway(client, retry_config=retry_config)
    company_gateway = CompanyGateway(client, retry_config=retry_config)
    cache = QueryCache(config.cache_ttls(), clock=clock)

    get_logger("trips.container").info(
        "Trip data layer ready",
        env=config.env,
        store_url=client.base_url,
    )

    return TripDesk(
        config=config,
        cache=cache,
        trip_gateway=trip_gateway,
        company_gateway=company_gateway,
        trips=TripQueries(cache, trip_gateway),
        companies=CompanyQueries(cache, company_gateway),
        mutations=TripMutations(cache, trip_gateway),
    )
