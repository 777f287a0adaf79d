"""
Company and user gateway for the trips dashboard.
"""

from typing import Any, Dict, List, Optional

from shared.errors import RemoteError, StoreUnavailableError
from shared.logging import get_logger
from shared.retry import RetryConfig, retry_on_exception

from ..domain.models import Company, User
from .store_client import StoreClient


USERS_SELECT = "*,company:companies(name,domain),manager:users(full_name,email)"


class CompanyGateway:
    """Typed access to the ``companies`` and ``users`` tables."""

    def __init__(self, client: StoreClient, retry_config: Optional[RetryConfig] = None):
        self.client = client
        self.logger = get_logger("trips.company_gateway")
        self.retry_config = retry_config or RetryConfig(max_attempts=3, base_delay=0.5)
        self._get = retry_on_exception((StoreUnavailableError,), config=self.retry_config)(self.client.request)

    async def list_companies(self) -> List[Company]:
        rows = await self._get("GET", "/companies", params=[("select", "*"), ("order", "name.asc")]) or []
        return [Company.model_validate(row) for row in rows]

    async def get_company(self, company_id: str) -> Company:
        rows = await self._get("GET", "/companies", params=[("id", f"eq.{company_id}")])
        if not rows:
            raise RemoteError(404, "Company not found")
        return Company.model_validate(rows[0])

    async def list_users_by_company(self, company_id: str) -> List[User]:
        rows = await self._get(
            "GET",
            "/users",
            params=[
                ("select", USERS_SELECT),
                ("company_id", f"eq.{company_id}"),
                ("order", "full_name.asc"),
            ],
        ) or []
        return [User.model_validate(row) for row in rows]

    async def create_company(self, data: Dict[str, Any]) -> Company:
        result = await self.client.request("POST", "/companies", json=data)
        # return=representation answers with a one-row array
        row = result[0] if isinstance(result, list) else result
        if not row:
            raise RemoteError(500, "Store returned no created company")
        company = Company.model_validate(row)
        self.logger.info("Company created", company_id=company.id)
        return company

    async def update_company(self, company_id: str, updates: Dict[str, Any]) -> Company:
        rows = await self.client.request(
            "PATCH", "/companies", params=[("id", f"eq.{company_id}")], json=updates
        )
        if not rows:
            raise RemoteError(404, "Company not found")
        return Company.model_validate(rows[0])
