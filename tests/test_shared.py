"""
Tests for the shared configuration, error and retry helpers.
"""

from unittest.mock import AsyncMock, patch

import pytest

from shared.config import CacheTTLs, get_config
from shared.errors import FetchError, MutationError, RemoteError, StoreUnavailableError
from shared.logging import clear_context, correlation_id_var, set_correlation_id
from shared.retry import RetryConfig, _calculate_delay, retry_on_exception


class TestConfig:
    """Test cases for configuration loading."""

    def test_defaults(self):
        config = get_config()

        assert config.cache_ttls() == CacheTTLs()
        assert config.retry_attempts == 3

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("TRIPDESK_TTL_LIST", "30")
        monkeypatch.setenv("TRIPDESK_STORE_URL", "https://store.example")

        config = get_config()

        assert config.cache_ttls().list == 30
        assert config.store_url == "https://store.example"

    def test_unknown_kind_uses_default_ttl(self):
        ttls = CacheTTLs(default=42)

        assert ttls.for_kind("detail") == 120
        assert ttls.for_kind("users") == 42
        assert ttls.for_kind(None) == 42


class TestErrors:
    """Test cases for the error hierarchy."""

    def test_remote_error_keeps_body(self):
        error = RemoteError(404, "Trip not found")

        assert error.status == 404
        assert error.details == {"status": 404, "body": "Trip not found"}

    def test_fetch_error_records_cause(self):
        error = FetchError(StoreUnavailableError())

        assert error.details == {"cause": "StoreUnavailableError", "cause_code": "STORE_UNAVAILABLE"}

    def test_mutation_error_message(self):
        error = MutationError("delete", RemoteError(500, "boom"))

        assert str(error) == "Failed to delete trip: Store returned 500: boom"
        assert error.details["status"] == 500

    def test_response_carries_correlation_id(self):
        set_correlation_id("corr-1", operation="create")
        try:
            response = MutationError("create", ValueError("bad")).to_response()
        finally:
            clear_context()

        assert response.correlation_id == "corr-1"
        assert response.code == "MUTATION_ERROR"
        assert correlation_id_var.get() is None


class TestRetry:
    """Test cases for the retry decorator."""

    @pytest.mark.asyncio
    async def test_retries_until_success(self):
        func = AsyncMock(side_effect=[StoreUnavailableError(), "ok"])
        func.__name__ = "fetch"
        wrapped = retry_on_exception((StoreUnavailableError,), RetryConfig(base_delay=0, jitter=False))(func)

        assert await wrapped() == "ok"
        assert func.await_count == 2

    @pytest.mark.asyncio
    async def test_reraises_last_exception(self):
        last = StoreUnavailableError("still down")
        func = AsyncMock(side_effect=[StoreUnavailableError(), last])
        func.__name__ = "fetch"
        wrapped = retry_on_exception(
            (StoreUnavailableError,), RetryConfig(max_attempts=2, base_delay=0, jitter=False)
        )(func)

        with pytest.raises(StoreUnavailableError) as exc_info:
            await wrapped()

        assert exc_info.value is last

    @pytest.mark.asyncio
    async def test_other_exceptions_pass_through(self):
        func = AsyncMock(side_effect=RemoteError(400, "bad request"))
        func.__name__ = "fetch"
        wrapped = retry_on_exception((StoreUnavailableError,), RetryConfig(base_delay=0))(func)

        with pytest.raises(RemoteError):
            await wrapped()
        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_waits_between_attempts(self):
        func = AsyncMock(side_effect=[StoreUnavailableError(), "ok"])
        func.__name__ = "fetch"
        config = RetryConfig(base_delay=0.25, jitter=False)
        wrapped = retry_on_exception((StoreUnavailableError,), config)(func)

        with patch("shared.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            await wrapped()

        sleep.assert_awaited_once_with(0.25)

    def test_delay_is_capped(self):
        config = RetryConfig(base_delay=1, max_delay=3, jitter=False)

        assert _calculate_delay(1, config) == 1
        assert _calculate_delay(2, config) == 2
        assert _calculate_delay(5, config) == 3
