"""
Unit tests for domain models.
"""

import pytest
from pydantic import ValidationError

from shared.test_helpers import TripDataFactory
from service_trips.app.domain.models import PaginatedResult, PaginationParams, Trip, TripFormData


class TestPaginatedResult:
    """Test cases for PaginatedResult."""

    def test_build_derives_window(self):
        result = PaginatedResult[int].build(list(range(10)), page=1, limit=10, total=25)

        assert result.total_pages == 3
        assert result.has_next is True
        assert result.has_prev is False

    def test_empty_result(self):
        result = PaginatedResult[int].build([], page=1, limit=10, total=0)

        assert result.total_pages == 0
        assert result.has_next is False
        assert result.has_prev is False

    def test_page_beyond_last(self):
        result = PaginatedResult[int].build([], page=5, limit=10, total=25)

        assert result.has_next is False
        assert result.has_prev is True

    def test_rejects_more_items_than_limit(self):
        with pytest.raises(ValidationError):
            PaginatedResult[int].build(list(range(11)), page=1, limit=10, total=11)

    def test_rejects_inconsistent_window(self):
        with pytest.raises(ValidationError):
            PaginatedResult[int](
                items=[], page=1, limit=10, total=25, total_pages=2, has_next=True, has_prev=False
            )


class TestModels:
    """Test cases for entity and parameter models."""

    def test_pagination_offset(self):
        assert PaginationParams().offset == 0
        assert PaginationParams(page=3, limit=20).offset == 40

    def test_pagination_rejects_zero_page(self):
        with pytest.raises(ValidationError):
            PaginationParams(page=0)

    def test_trip_reads_embedded_relations(self):
        trip = Trip.model_validate(TripDataFactory.create_trip_row("trip-1", extra_column="kept"))

        assert trip.user.full_name == "Ada Brandt"
        assert trip.company.name == "Northwind"
        assert trip.start_date.isoformat() == "2030-05-10"
        assert trip.model_extra["extra_column"] == "kept"

    def test_form_priority_defaults_to_medium(self):
        data = TripDataFactory.create_trip_form()
        del data["priority"]

        assert TripFormData.model_validate(data).priority == "medium"
