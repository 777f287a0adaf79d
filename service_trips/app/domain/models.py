"""
Entity and parameter models for the trips data layer.
"""

import math
from datetime import date, datetime
from typing import Any, Dict, Generic, List, Literal, Optional, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator


# Alias for fields literally named "date"
Day = date


TripStatus = Literal["draft", "submitted", "approved", "rejected", "in_progress", "completed"]
TripPurpose = Literal["business", "conference", "training", "client_meeting"]
TripPriority = Literal["low", "medium", "high", "urgent"]
TravelGrade = Literal["standard", "business", "premium"]
BookingStatus = Literal["pending", "confirmed", "cancelled"]
TransportStatus = Literal["pending", "confirmed", "cancelled", "completed"]
TransportType = Literal["flight", "train", "car_rental", "taxi", "uber", "tube"]
ApprovalStatus = Literal["pending", "approved", "rejected"]
ExpenseCategory = Literal[
    "meals",
    "transport",
    "accommodation",
    "miscellaneous",
    "conference",
    "entertainment",
    "communication",
]
RecommendationType = Literal[
    "flights",
    "hotels",
    "restaurants",
    "attractions",
    "business_venues",
    "cultural_etiquette",
    "local_tips",
    "weather_clothing",
    "networking_events",
]


class StoreRecord(BaseModel):
    """Base for records returned by the store.

    Embedded relations arrive under the table name (``users``, ``companies``)
    and unknown columns are kept as extras.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class CompanyPolicy(StoreRecord):
    max_flight_cost: Optional[float] = None
    max_hotel_per_night: Optional[float] = None
    requires_approval_above: Optional[float] = None


class Company(StoreRecord):
    id: Optional[str] = None
    name: Optional[str] = None
    domain: Optional[str] = None
    travel_budget: Optional[float] = None
    policy: Optional[CompanyPolicy] = None
    created_at: Optional[datetime] = None


class User(StoreRecord):
    id: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    company_id: Optional[str] = None
    department: Optional[str] = None
    role: Optional[str] = None
    manager_id: Optional[str] = None
    travel_grade: Optional[TravelGrade] = None
    created_at: Optional[datetime] = None
    company: Optional[Company] = None
    manager: Optional["User"] = None


class ItineraryActivity(StoreRecord):
    time: str
    activity: str
    location: Optional[str] = None


class TripItinerary(StoreRecord):
    id: str
    trip_id: str
    day_number: int
    date: Day
    activities: List[ItineraryActivity] = Field(default_factory=list)
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class Accommodation(StoreRecord):
    id: str
    trip_id: str
    hotel_name: str
    address: Optional[str] = None
    check_in: date
    check_out: date
    room_type: Optional[str] = None
    nightly_rate: Optional[float] = None
    total_cost: Optional[float] = None
    booking_reference: Optional[str] = None
    status: BookingStatus = "pending"
    created_at: Optional[datetime] = None


class Transportation(StoreRecord):
    id: str
    trip_id: str
    type: TransportType
    from_location: str
    to_location: str
    departure_time: Optional[datetime] = None
    arrival_time: Optional[datetime] = None
    cost: Optional[float] = None
    booking_reference: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    status: TransportStatus = "pending"
    created_at: Optional[datetime] = None


class AIRecommendation(StoreRecord):
    id: str
    trip_id: str
    recommendation_type: RecommendationType
    content: Dict[str, Any] = Field(default_factory=dict)
    confidence_score: float = 0.0
    created_at: Optional[datetime] = None


class Expense(StoreRecord):
    id: str
    trip_id: str
    category: ExpenseCategory
    amount: float
    currency: str = "USD"
    description: Optional[str] = None
    date: Day
    receipt_url: Optional[str] = None
    is_reimbursable: bool = True
    created_at: Optional[datetime] = None


class TripApproval(StoreRecord):
    id: str
    trip_id: str
    approver_id: Optional[str] = None
    status: ApprovalStatus = "pending"
    comments: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    approver: Optional[User] = Field(default=None, alias="users")


class Trip(StoreRecord):
    """A trip with its embedded relations, as returned by the store."""

    id: str
    title: str
    description: Optional[str] = None
    user_id: Optional[str] = None
    company_id: Optional[str] = None
    destination_city: Optional[str] = None
    destination_country: Optional[str] = None
    purpose: Optional[TripPurpose] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total_budget: Optional[float] = None
    actual_cost: Optional[float] = None
    status: TripStatus = "draft"
    priority: Optional[TripPriority] = None
    approval_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    user: Optional[User] = Field(default=None, alias="users")
    company: Optional[Company] = Field(default=None, alias="companies")
    accommodations: List[Accommodation] = Field(default_factory=list)
    transportation: List[Transportation] = Field(default_factory=list)
    trip_itineraries: List[TripItinerary] = Field(default_factory=list)
    ai_recommendations: List[AIRecommendation] = Field(default_factory=list)
    expenses: List[Expense] = Field(default_factory=list)
    trip_approvals: List[TripApproval] = Field(default_factory=list)


class TripFilters(BaseModel):
    """List filters. Unset fields do not constrain the query."""

    model_config = ConfigDict(frozen=True)

    status: Optional[TripStatus] = None
    user_id: Optional[str] = None
    company_id: Optional[str] = None
    destination: Optional[str] = None
    purpose: Optional[TripPurpose] = None
    priority: Optional[TripPriority] = None
    start_date_gte: Optional[date] = None
    start_date_lte: Optional[date] = None
    search: Optional[str] = None


class PaginationParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class TripFormData(BaseModel):
    """Create payload. Validated upstream by the form layer."""

    title: str
    description: Optional[str] = None
    user_id: str
    company_id: str
    destination_city: str
    destination_country: str
    purpose: TripPurpose
    start_date: date
    end_date: date
    total_budget: Optional[float] = None
    priority: TripPriority = "medium"


class TripStats(BaseModel):
    total_trips: int = 0
    total_budget: float = 0.0
    total_spent: float = 0.0
    by_status: Dict[str, int] = Field(default_factory=dict)
    by_purpose: Dict[str, int] = Field(default_factory=dict)
    by_priority: Dict[str, int] = Field(default_factory=dict)
    average_cost: float = 0.0
    upcoming_trips: int = 0
    completed_trips: int = 0


T = TypeVar("T")


class PaginatedResult(BaseModel, Generic[T]):
    """One page of records plus the pagination window it belongs to."""

    items: List[T]
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    total_pages: int = Field(ge=0)
    has_next: bool
    has_prev: bool

    @model_validator(mode="after")
    def _check_window(self) -> "PaginatedResult[T]":
        if len(self.items) > self.limit:
            raise ValueError(f"page holds {len(self.items)} items but limit is {self.limit}")
        if self.total_pages != math.ceil(self.total / self.limit):
            raise ValueError("total_pages does not match total and limit")
        if self.has_next != (self.page < self.total_pages) or self.has_prev != (self.page > 1):
            raise ValueError("has_next/has_prev do not match the page window")
        return self

    @classmethod
    def build(cls, items: Sequence[Any], page: int, limit: int, total: int) -> "PaginatedResult[T]":
        """Derive the page window from ``total`` and ``limit``."""
        total_pages = math.ceil(total / limit) if limit > 0 else 0
        return cls(
            items=list(items),
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )
