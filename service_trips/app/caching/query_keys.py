"""
Query keys for the trips query cache.

A key is ``(namespace, kind, *params)``. The positional prefix is
order-sensitive; mapping parameters (filters, pagination) are normalised so
field order never affects equality. Keys form a prefix hierarchy used for
bulk invalidation.
"""

from datetime import date, datetime
from typing import Any, Iterator, Mapping, Optional, Tuple, Union

from pydantic import BaseModel

from ..domain.models import PaginationParams, TripFilters, TripStatus


def _freeze(value: Any) -> Any:
    """Normalise a key part into a hashable, order-insensitive form."""
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", exclude_none=True)
    # Mappings and sets are tagged so they never equal a plain sequence
    if isinstance(value, Mapping):
        return ("__map__",) + tuple(sorted(
            (str(k), _freeze(v)) for k, v in value.items() if v is not None
        ))
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    if isinstance(value, (set, frozenset)):
        return ("__set__",) + tuple(sorted(_freeze(v) for v in value))
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


class QueryKey:
    """Structurally comparable identifier of a cached query."""

    __slots__ = ("parts",)

    def __init__(self, *parts: Any):
        if not parts:
            raise ValueError("QueryKey needs at least a namespace")
        self.parts: Tuple[Any, ...] = tuple(_freeze(p) for p in parts)

    @classmethod
    def coerce(cls, key: Union["QueryKey", Tuple[Any, ...], list]) -> "QueryKey":
        if isinstance(key, QueryKey):
            return key
        return cls(*key)

    @property
    def namespace(self) -> str:
        return self.parts[0]

    @property
    def kind(self) -> Optional[str]:
        return self.parts[1] if len(self.parts) > 1 else None

    def starts_with(self, prefix: "QueryKey") -> bool:
        """True when ``prefix`` equals this key or is an ancestor of it."""
        size = len(prefix.parts)
        return self.parts[:size] == prefix.parts

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QueryKey):
            return NotImplemented
        return self.parts == other.parts

    def __hash__(self) -> int:
        return hash(self.parts)

    def __len__(self) -> int:
        return len(self.parts)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.parts)

    def __repr__(self) -> str:
        return f"QueryKey{self.parts!r}"


KeyLike = Union[QueryKey, Tuple[Any, ...], list]


def coerce_filters(filters: Union[TripFilters, Mapping[str, Any], None]) -> TripFilters:
    if filters is None:
        return TripFilters()
    if isinstance(filters, TripFilters):
        return filters
    return TripFilters.model_validate(dict(filters))


def coerce_pagination(pagination: Union[PaginationParams, Mapping[str, Any], None]) -> PaginationParams:
    if pagination is None:
        return PaginationParams()
    if isinstance(pagination, PaginationParams):
        return pagination
    return PaginationParams.model_validate(dict(pagination))


class TripKeys:
    """Key factory for the ``trips`` namespace, one fixed shape per kind."""

    NAMESPACE = "trips"

    @classmethod
    def all(cls) -> QueryKey:
        return QueryKey(cls.NAMESPACE)

    @classmethod
    def lists(cls) -> QueryKey:
        return QueryKey(cls.NAMESPACE, "list")

    @classmethod
    def list(cls, filters=None, pagination=None) -> QueryKey:
        return QueryKey(cls.NAMESPACE, "list", coerce_filters(filters), coerce_pagination(pagination))

    @classmethod
    def details(cls) -> QueryKey:
        return QueryKey(cls.NAMESPACE, "detail")

    @classmethod
    def detail(cls, trip_id: str) -> QueryKey:
        return QueryKey(cls.NAMESPACE, "detail", trip_id)

    @classmethod
    def all_stats(cls) -> QueryKey:
        return QueryKey(cls.NAMESPACE, "stats")

    @classmethod
    def stats(cls, company_id: Optional[str] = None) -> QueryKey:
        return QueryKey(cls.NAMESPACE, "stats", company_id)

    @classmethod
    def all_recent(cls) -> QueryKey:
        return QueryKey(cls.NAMESPACE, "recent")

    @classmethod
    def recent(cls, limit: int = 5) -> QueryKey:
        return QueryKey(cls.NAMESPACE, "recent", limit)

    @classmethod
    def all_by_status(cls) -> QueryKey:
        return QueryKey(cls.NAMESPACE, "by_status")

    @classmethod
    def by_status(cls, status: TripStatus, pagination=None) -> QueryKey:
        return QueryKey(cls.NAMESPACE, "by_status", status, coerce_pagination(pagination))


class CompanyKeys:
    """Key factory for the ``companies`` namespace."""

    NAMESPACE = "companies"

    @classmethod
    def all(cls) -> QueryKey:
        return QueryKey(cls.NAMESPACE)

    @classmethod
    def list(cls) -> QueryKey:
        return QueryKey(cls.NAMESPACE, "list")

    @classmethod
    def detail(cls, company_id: str) -> QueryKey:
        return QueryKey(cls.NAMESPACE, "detail", company_id)

    @classmethod
    def users(cls, company_id: str) -> QueryKey:
        return QueryKey(cls.NAMESPACE, "users", company_id)
