"""
Domain models for the trips data layer.

Entity records are opaque to the cache; only their query keys matter there.
"""

from .models import (
    AIRecommendation,
    Accommodation,
    Company,
    CompanyPolicy,
    Expense,
    ItineraryActivity,
    PaginatedResult,
    PaginationParams,
    Transportation,
    Trip,
    TripApproval,
    TripFilters,
    TripFormData,
    TripItinerary,
    TripPriority,
    TripPurpose,
    TripStats,
    TripStatus,
    User,
)

__all__ = [
    "AIRecommendation",
    "Accommodation",
    "Company",
    "CompanyPolicy",
    "Expense",
    "ItineraryActivity",
    "PaginatedResult",
    "PaginationParams",
    "Transportation",
    "Trip",
    "TripApproval",
    "TripFilters",
    "TripFormData",
    "TripItinerary",
    "TripPriority",
    "TripPurpose",
    "TripStats",
    "TripStatus",
    "User",
]
