"""
Unit tests for the trip mutation coordinator.
"""

from unittest.mock import AsyncMock

import pytest

from shared.errors import MutationError, RemoteError
from shared.logging import clear_context, correlation_id_var, operation_var, set_correlation_id
from shared.test_helpers import FakeClock, TripDataFactory
from service_trips.app.adapters.trip_gateway import TripGateway
from service_trips.app.caching.query_cache import QueryCache
from service_trips.app.caching.query_keys import CompanyKeys, TripKeys
from service_trips.app.domain.models import Trip, TripFormData
from service_trips.app.mutations.coordinator import TripMutations


class TestTripMutations:
    """Test cases for TripMutations."""

    @pytest.fixture
    def cache(self):
        return QueryCache(clock=FakeClock())

    @pytest.fixture
    def gateway(self):
        return AsyncMock(spec=TripGateway)

    @pytest.fixture
    def mutations(self, cache, gateway):
        return TripMutations(cache, gateway)

    @pytest.fixture
    def seeded(self, cache):
        """Cache holding one entry of every trips kind plus a company entry."""
        keys = {
            "list": TripKeys.list({"status": "draft"}, {"page": 1, "limit": 10}),
            "list_p2": TripKeys.list({}, {"page": 2}),
            "stats": TripKeys.stats(),
            "stats_company": TripKeys.stats("company-1"),
            "recent": TripKeys.recent(5),
            "by_status": TripKeys.by_status("draft"),
            "detail": TripKeys.detail("trip-1"),
            "other_detail": TripKeys.detail("trip-2"),
            "companies": CompanyKeys.list(),
        }
        for name, key in keys.items():
            cache.write(key, f"cached-{name}")
        return keys

    @pytest.fixture
    def trip(self):
        return Trip.model_validate(TripDataFactory.create_trip_row("trip-1"))

    def stale(self, cache, keys):
        return {name for name, key in keys.items() if cache.peek(key).is_stale}

    @pytest.mark.asyncio
    async def test_create_invalidates_aggregates_and_seeds_detail(self, mutations, gateway, cache, seeded):
        created = Trip.model_validate(TripDataFactory.create_trip_row("trip-new"))
        gateway.create_trip.return_value = created
        form = TripFormData.model_validate(TripDataFactory.create_trip_form())

        result = await mutations.create(form)

        assert result is created
        gateway.create_trip.assert_awaited_once_with(form)
        assert self.stale(cache, seeded) == {"list", "list_p2", "stats", "stats_company", "recent"}

        fetcher = AsyncMock()
        state = cache.read(TripKeys.detail("trip-new"), fetcher)
        assert state.data is created
        assert state.status == "success"
        fetcher.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_overwrites_detail_and_invalidates_lists(self, mutations, gateway, cache, seeded, trip):
        gateway.update_trip.return_value = trip

        result = await mutations.update("trip-1", {"title": "Renamed"})

        assert result is trip
        gateway.update_trip.assert_awaited_once_with("trip-1", {"title": "Renamed"})
        assert cache.peek(seeded["detail"]).data is trip
        assert cache.peek(seeded["detail"]).is_stale is False
        assert self.stale(cache, seeded) == {"list", "list_p2", "stats", "stats_company"}

    @pytest.mark.asyncio
    async def test_failed_update_leaves_cache_untouched(self, mutations, gateway, cache, seeded):
        before = {name: cache.peek(key) for name, key in seeded.items()}
        cause = RemoteError(409, "conflict")
        gateway.update_trip.side_effect = cause

        with pytest.raises(MutationError) as exc_info:
            await mutations.update("trip-1", {"title": "Renamed"})

        assert exc_info.value.operation == "update"
        assert exc_info.value.cause is cause
        assert exc_info.value.__cause__ is cause
        assert {name: cache.peek(key) for name, key in seeded.items()} == before
        assert self.stale(cache, seeded) == set()

    @pytest.mark.asyncio
    async def test_failed_create_leaves_cache_untouched(self, mutations, gateway, cache, seeded):
        before = {name: cache.peek(key) for name, key in seeded.items()}
        gateway.create_trip.side_effect = RemoteError(422, "invalid dates")
        form = TripFormData.model_validate(TripDataFactory.create_trip_form())

        with pytest.raises(MutationError):
            await mutations.create(form)

        assert {name: cache.peek(key) for name, key in seeded.items()} == before
        assert len(cache.keys()) == len(seeded)

    @pytest.mark.asyncio
    async def test_delete_evicts_detail_and_invalidates_aggregates(self, mutations, gateway, cache, seeded):
        gateway.delete_trip.return_value = None

        result = await mutations.delete("trip-1")

        assert result is None
        assert cache.peek(seeded["detail"]) is None
        remaining = {name: key for name, key in seeded.items() if name != "detail"}
        assert self.stale(cache, remaining) == {"list", "list_p2", "stats", "stats_company", "recent"}

        fetcher = AsyncMock(side_effect=RemoteError(404, "Trip not found"))
        await cache.ensure(seeded["detail"], fetcher)
        fetcher.assert_called_once()

    @pytest.mark.asyncio
    async def test_failed_delete_keeps_detail(self, mutations, gateway, cache, seeded):
        gateway.delete_trip.side_effect = RemoteError(500, "boom")

        with pytest.raises(MutationError) as exc_info:
            await mutations.delete("trip-1")

        assert exc_info.value.operation == "delete"
        assert cache.peek(seeded["detail"]).data == "cached-detail"

    @pytest.mark.asyncio
    async def test_update_status_writes_detail(self, mutations, gateway, cache, seeded, trip):
        approved = trip.model_copy(update={"status": "approved", "approval_notes": "ok"})
        gateway.update_trip_status.return_value = approved

        result = await mutations.update_status("trip-1", "approved", "ok")

        assert result is approved
        gateway.update_trip_status.assert_awaited_once_with("trip-1", "approved", "ok")
        assert cache.peek(seeded["detail"]).data.status == "approved"
        assert self.stale(cache, seeded) == {"list", "list_p2", "stats", "stats_company"}

    @pytest.mark.asyncio
    async def test_mutation_error_renders_notification(self, mutations, gateway):
        gateway.update_trip_status.side_effect = RemoteError(403, "not allowed")

        with pytest.raises(MutationError) as exc_info:
            await mutations.update_status("trip-1", "approved")

        response = exc_info.value.to_response()
        assert response.code == "MUTATION_ERROR"
        assert response.details["operation"] == "update_status"
        assert response.details["status"] == 403
        assert response.correlation_id is not None
        assert response.correlation_id == exc_info.value.correlation_id
        assert correlation_id_var.get() is None

    @pytest.mark.asyncio
    async def test_mutation_keeps_caller_correlation_id(self, mutations, gateway):
        gateway.update_trip.side_effect = RemoteError(409, "conflict")
        set_correlation_id("request-42")
        try:
            with pytest.raises(MutationError) as exc_info:
                await mutations.update("trip-1", {"title": "Renamed"})

            assert exc_info.value.to_response().correlation_id == "request-42"
            assert correlation_id_var.get() == "request-42"
            assert operation_var.get() is None
        finally:
            clear_context()
