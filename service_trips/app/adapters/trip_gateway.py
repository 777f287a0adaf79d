"""
Trip entity gateway: one remote operation per method.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from shared.errors import RemoteError, StoreUnavailableError
from shared.logging import get_logger
from shared.retry import RetryConfig, retry_on_exception

from ..domain.models import (
    PaginatedResult,
    PaginationParams,
    Trip,
    TripFilters,
    TripFormData,
    TripStats,
    TripStatus,
)
from .store_client import StoreClient


LIST_SELECT = (
    "*,"
    "users(id,full_name,department,travel_grade),"
    "companies(id,name,policy),"
    "accommodations(*),"
    "transportation(*),"
    "trip_itineraries(*),"
    "ai_recommendations(*),"
    "expenses(*),"
    "trip_approvals(*,users(full_name))"
)

DETAIL_SELECT = (
    "*,"
    "users(id,full_name,department,travel_grade,email),"
    "companies(id,name,policy,domain),"
    "accommodations(*),"
    "transportation(*),"
    "trip_itineraries(*),"
    "ai_recommendations(*),"
    "expenses(*),"
    "trip_approvals(*,users(full_name,email))"
)

RECENT_SELECT = "*,users(full_name,department),companies(name)"

STATS_SELECT = "status,total_budget,actual_cost,purpose,priority,start_date"


def build_trip_filter_params(filters: Optional[TripFilters]) -> List[Tuple[str, str]]:
    """Translate trip filters into the store's query-parameter dialect."""
    if filters is None:
        return []

    params: List[Tuple[str, str]] = []
    for field in ("status", "user_id", "company_id", "purpose", "priority"):
        value = getattr(filters, field)
        if value:
            params.append((field, f"eq.{value}"))

    if filters.destination:
        params.append(("destination_city", f"ilike.%{filters.destination}%"))
    if filters.start_date_gte:
        params.append(("start_date", f"gte.{filters.start_date_gte.isoformat()}"))
    if filters.start_date_lte:
        params.append(("start_date", f"lte.{filters.start_date_lte.isoformat()}"))
    if filters.search:
        term = filters.search
        params.append((
            "or",
            f"(title.ilike.%{term}%,description.ilike.%{term}%,destination_city.ilike.%{term}%)"
        ))

    return params


def compute_trip_stats(rows: List[Dict[str, Any]], today: Optional[date] = None) -> TripStats:
    """Aggregate projected trip rows into dashboard statistics."""
    today = today or datetime.now(timezone.utc).date()
    stats = TripStats(total_trips=len(rows))

    with_cost = 0
    for row in rows:
        stats.total_budget += row.get("total_budget") or 0
        cost = row.get("actual_cost") or 0
        stats.total_spent += cost
        if cost > 0:
            with_cost += 1

        for field, bucket in (
            ("status", stats.by_status),
            ("purpose", stats.by_purpose),
            ("priority", stats.by_priority),
        ):
            value = row.get(field)
            if value:
                bucket[value] = bucket.get(value, 0) + 1

        start = row.get("start_date")
        if start:
            start_date = date.fromisoformat(str(start)[:10])
            if start_date > today:
                stats.upcoming_trips += 1
            elif row.get("status") == "completed":
                stats.completed_trips += 1

    if with_cost:
        stats.average_cost = stats.total_spent / with_cost

    return stats


def _first_or_404(rows: Any, message: str) -> Dict[str, Any]:
    if not rows:
        raise RemoteError(404, message)
    return rows[0]


class TripGateway:
    """Typed access to the ``trips`` table and its relations."""

    def __init__(self, client: StoreClient, retry_config: Optional[RetryConfig] = None):
        self.client = client
        self.logger = get_logger("trips.gateway")
        self.retry_config = retry_config or RetryConfig(max_attempts=3, base_delay=0.5)

        # Reads are idempotent; writes go straight through
        retry = retry_on_exception((StoreUnavailableError,), config=self.retry_config)
        self._get = retry(self.client.request)
        self._count = retry(self.client.count)

    async def list_trips(
        self,
        filters: Optional[TripFilters] = None,
        pagination: Optional[PaginationParams] = None,
    ) -> PaginatedResult[Trip]:
        """Fetch one page of trips; the total comes from a count query with identical filters."""
        pagination = pagination or PaginationParams()
        filter_params = build_trip_filter_params(filters)

        params = [
            ("select", LIST_SELECT),
            ("order", "created_at.desc"),
            ("limit", str(pagination.limit)),
            ("offset", str(pagination.offset)),
        ] + filter_params

        rows = await self._get("GET", "/trips", params=params) or []
        total = await self._count("/trips", params=filter_params)

        return PaginatedResult[Trip].build(
            items=[Trip.model_validate(row) for row in rows],
            page=pagination.page,
            limit=pagination.limit,
            total=total,
        )

    async def get_trip(self, trip_id: str) -> Trip:
        rows = await self._get(
            "GET", "/trips", params=[("id", f"eq.{trip_id}"), ("select", DETAIL_SELECT)]
        )
        return Trip.model_validate(_first_or_404(rows, "Trip not found"))

    async def create_trip(self, form: TripFormData) -> Trip:
        """Create a trip in ``draft`` with no spend recorded yet."""
        payload = form.model_dump(mode="json", exclude_none=True)
        payload.update({
            "status": "draft",
            "actual_cost": 0,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        })

        rows = await self.client.request("POST", "/trips", json=payload)
        trip = Trip.model_validate(_first_or_404(rows, "Store returned no created trip"))
        self.logger.info("Trip created", trip_id=trip.id)
        return trip

    async def update_trip(self, trip_id: str, updates: Union[Dict[str, Any], TripFormData]) -> Trip:
        if isinstance(updates, TripFormData):
            updates = updates.model_dump(mode="json", exclude_unset=True)
        payload = dict(updates)
        payload["updated_at"] = datetime.now(timezone.utc).isoformat()

        rows = await self.client.request(
            "PATCH", "/trips", params=[("id", f"eq.{trip_id}")], json=payload
        )
        return Trip.model_validate(_first_or_404(rows, "Trip not found"))

    async def delete_trip(self, trip_id: str) -> None:
        await self.client.request("DELETE", "/trips", params=[("id", f"eq.{trip_id}")])
        self.logger.info("Trip deleted", trip_id=trip_id)

    async def get_trip_stats(self, company_id: Optional[str] = None) -> TripStats:
        params = [("select", STATS_SELECT)]
        if company_id:
            params.append(("company_id", f"eq.{company_id}"))

        rows = await self._get("GET", "/trips", params=params) or []
        return compute_trip_stats(rows)

    async def get_recent_trips(self, limit: int = 5) -> List[Trip]:
        rows = await self._get(
            "GET",
            "/trips",
            params=[("select", RECENT_SELECT), ("order", "created_at.desc"), ("limit", str(limit))],
        ) or []
        return [Trip.model_validate(row) for row in rows]

    async def get_trips_by_status(
        self,
        status: TripStatus,
        pagination: Optional[PaginationParams] = None,
    ) -> PaginatedResult[Trip]:
        return await self.list_trips(TripFilters(status=status), pagination)

    async def update_trip_status(self, trip_id: str, status: TripStatus, notes: Optional[str] = None) -> Trip:
        updates: Dict[str, Any] = {"status": status}
        if notes is not None:
            updates["approval_notes"] = notes
        return await self.update_trip(trip_id, updates)
