"""
Read helpers binding query keys, staleness and gateway fetchers to the cache.

Every helper returns a ``QueryState`` snapshot straight away; its
``*_settled`` twin waits for any running fetch to finish.
"""

from typing import Optional

from .adapters.company_gateway import CompanyGateway
from .adapters.trip_gateway import TripGateway
from .caching.query_cache import QueryCache, QueryState
from .caching.query_keys import CompanyKeys, TripKeys, coerce_filters, coerce_pagination
from .domain.models import TripStatus


class TripQueries:
    """Trip reads through the query cache."""

    def __init__(self, cache: QueryCache, gateway: TripGateway):
        self.cache = cache
        self.gateway = gateway

    def trips(self, filters=None, pagination=None) -> QueryState:
        filters, pagination = coerce_filters(filters), coerce_pagination(pagination)
        return self.cache.read(
            TripKeys.list(filters, pagination),
            lambda: self.gateway.list_trips(filters, pagination),
        )

    async def trips_settled(self, filters=None, pagination=None) -> QueryState:
        filters, pagination = coerce_filters(filters), coerce_pagination(pagination)
        return await self.cache.ensure(
            TripKeys.list(filters, pagination),
            lambda: self.gateway.list_trips(filters, pagination),
        )

    def trip(self, trip_id: Optional[str]) -> QueryState:
        # No id yet (e.g. a closed detail modal): nothing to fetch
        if not trip_id:
            return QueryState(key=TripKeys.details(), status="idle")
        return self.cache.read(TripKeys.detail(trip_id), lambda: self.gateway.get_trip(trip_id))

    async def trip_settled(self, trip_id: Optional[str]) -> QueryState:
        if not trip_id:
            return QueryState(key=TripKeys.details(), status="idle")
        return await self.cache.ensure(TripKeys.detail(trip_id), lambda: self.gateway.get_trip(trip_id))

    def stats(self, company_id: Optional[str] = None) -> QueryState:
        return self.cache.read(TripKeys.stats(company_id), lambda: self.gateway.get_trip_stats(company_id))

    async def stats_settled(self, company_id: Optional[str] = None) -> QueryState:
        return await self.cache.ensure(
            TripKeys.stats(company_id), lambda: self.gateway.get_trip_stats(company_id)
        )

    def recent(self, limit: int = 5) -> QueryState:
        return self.cache.read(TripKeys.recent(limit), lambda: self.gateway.get_recent_trips(limit))

    async def recent_settled(self, limit: int = 5) -> QueryState:
        return await self.cache.ensure(TripKeys.recent(limit), lambda: self.gateway.get_recent_trips(limit))

    def by_status(self, status: TripStatus, pagination=None) -> QueryState:
        pagination = coerce_pagination(pagination)
        return self.cache.read(
            TripKeys.by_status(status, pagination),
            lambda: self.gateway.get_trips_by_status(status, pagination),
        )

    async def by_status_settled(self, status: TripStatus, pagination=None) -> QueryState:
        pagination = coerce_pagination(pagination)
        return await self.cache.ensure(
            TripKeys.by_status(status, pagination),
            lambda: self.gateway.get_trips_by_status(status, pagination),
        )


class CompanyQueries:
    """Company and user reads through the query cache."""

    def __init__(self, cache: QueryCache, gateway: CompanyGateway):
        self.cache = cache
        self.gateway = gateway

    def companies(self) -> QueryState:
        return self.cache.read(CompanyKeys.list(), self.gateway.list_companies)

    async def companies_settled(self) -> QueryState:
        return await self.cache.ensure(CompanyKeys.list(), self.gateway.list_companies)

    def company(self, company_id: str) -> QueryState:
        return self.cache.read(CompanyKeys.detail(company_id), lambda: self.gateway.get_company(company_id))

    async def company_settled(self, company_id: str) -> QueryState:
        return await self.cache.ensure(
            CompanyKeys.detail(company_id), lambda: self.gateway.get_company(company_id)
        )

    def users(self, company_id: str) -> QueryState:
        return self.cache.read(
            CompanyKeys.users(company_id), lambda: self.gateway.list_users_by_company(company_id)
        )

    async def users_settled(self, company_id: str) -> QueryState:
        return await self.cache.ensure(
            CompanyKeys.users(company_id), lambda: self.gateway.list_users_by_company(company_id)
        )
