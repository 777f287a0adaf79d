"""
Shared utilities for the TripDesk data layer.

This package aggregates common building blocks consumed by the trips service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with correlation context
- errors: Canonical error types and responses
- retry: Retry decorator for idempotent remote reads
- test_helpers: Record factories used by the test suites

Any cross-service logic should live here to avoid import cycles across
service packages. Do not import from service_* packages into shared/.
"""
