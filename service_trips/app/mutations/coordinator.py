"""
Mutation coordinator: trip writes plus their cache invalidation recipe.
"""

from typing import Any, Dict, Optional, Union

from shared.errors import MutationError
from shared.logging import correlation_scope, get_logger

from ..adapters.trip_gateway import TripGateway
from ..caching.query_cache import QueryCache
from ..caching.query_keys import TripKeys
from ..domain.models import Trip, TripFormData, TripStatus


class TripMutations:
    """Runs trip writes and keeps the query cache consistent afterwards.

    On failure nothing in the cache is touched and a ``MutationError`` is
    raised. On success, aggregate views (lists, stats, recent) are
    invalidated wholesale and the detail entry is overwritten with the
    record the store returned.
    """

    def __init__(self, cache: QueryCache, gateway: TripGateway):
        self.cache = cache
        self.gateway = gateway
        self.logger = get_logger("trips.mutations")

    async def create(self, payload: TripFormData) -> Trip:
        trip = await self._run("create", self.gateway.create_trip(payload))

        self.cache.invalidate(TripKeys.lists())
        self.cache.invalidate(TripKeys.all_stats())
        self.cache.invalidate(TripKeys.all_recent())
        self.cache.write(TripKeys.detail(trip.id), trip)
        return trip

    async def update(self, trip_id: str, updates: Union[Dict[str, Any], TripFormData]) -> Trip:
        trip = await self._run("update", self.gateway.update_trip(trip_id, updates), trip_id=trip_id)

        self.cache.write(TripKeys.detail(trip.id), trip)
        self.cache.invalidate(TripKeys.lists())
        self.cache.invalidate(TripKeys.all_stats())
        return trip

    async def delete(self, trip_id: str) -> None:
        await self._run("delete", self.gateway.delete_trip(trip_id), trip_id=trip_id)

        self.cache.remove(TripKeys.detail(trip_id))
        self.cache.invalidate(TripKeys.lists())
        self.cache.invalidate(TripKeys.all_stats())
        self.cache.invalidate(TripKeys.all_recent())

    async def update_status(self, trip_id: str, status: TripStatus, notes: Optional[str] = None) -> Trip:
        trip = await self._run(
            "update_status",
            self.gateway.update_trip_status(trip_id, status, notes),
            trip_id=trip_id,
        )

        self.cache.write(TripKeys.detail(trip.id), trip)
        self.cache.invalidate(TripKeys.lists())
        self.cache.invalidate(TripKeys.all_stats())
        return trip

    async def _run(self, operation: str, call, **context) -> Any:
        """Await the gateway call, wrapping any failure in ``MutationError``."""
        with correlation_scope(operation) as correlation_id:
            try:
                result = await call
            except Exception as exc:
                self.logger.error(f"Failed to {operation.replace('_', ' ')} trip", error=str(exc), **context)
                raise MutationError(operation, exc, correlation_id=correlation_id) from exc

            self.logger.info("Trip mutation succeeded", **context)
            return result
