"""
REST client for the remote trips store.
"""

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import httpx

from shared.errors import RemoteError, StoreUnavailableError
from shared.logging import get_logger


Params = Union[Dict[str, Any], Sequence[Tuple[str, Any]]]

_CONTENT_RANGE = re.compile(r"^\s*(?:\d+-\d+|\*)/(\d+)\s*$")


def build_query_params(params: Optional[Params]) -> List[Tuple[str, str]]:
    """Flatten params into ordered pairs, dropping ``None`` values.

    Repeated keys are kept, so two range conditions on one column can be sent
    together (``start_date=gte.X&start_date=lte.Y``).
    """
    if not params:
        return []
    items = params.items() if isinstance(params, dict) else params
    return [(key, str(value)) for key, value in items if value is not None]


def parse_content_range(value: Optional[str]) -> Optional[int]:
    """Total row count from a ``Content-Range`` header such as ``0-9/25``."""
    if not value:
        return None
    match = _CONTENT_RANGE.match(value)
    return int(match.group(1)) if match else None


class StoreClient:
    """Thin HTTP wrapper around the store's REST endpoint."""

    def __init__(self, store_url: str, anon_key: str, *,
                 timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = f"{store_url.rstrip('/')}/rest/v1"
        self.timeout = timeout
        self.transport = transport
        self.logger = get_logger("trips.store_client")

        self.headers = {
            "apikey": anon_key,
            "Authorization": f"Bearer {anon_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def _send(self, method: str, path: str, params: Optional[Params] = None,
                    json: Any = None, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        query = build_query_params(params)
        try:
            async with self._client() as client:
                response = await client.request(method, path, params=query, json=json, headers=headers)
        except httpx.HTTPError as exc:
            self.logger.error("Store transport error", method=method, path=path, error=str(exc))
            raise StoreUnavailableError(
                f"Cannot reach store at {self.base_url}: {exc}",
                details={"method": method, "path": path}
            ) from exc

        if not response.is_success:
            self.logger.error(
                "Store request failed",
                method=method,
                path=path,
                status_code=response.status_code,
                response=response.text
            )
            raise RemoteError(response.status_code, response.text)

        return response

    async def request(self, method: str, path: str, params: Optional[Params] = None,
                      json: Any = None, headers: Optional[Dict[str, str]] = None) -> Any:
        """Issue a request and decode its JSON body; empty bodies give ``None``."""
        response = await self._send(method, path, params=params, json=json, headers=headers)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def count(self, path: str, params: Optional[Params] = None) -> int:
        """Exact row count for ``params`` using a separate count query."""
        query = [("select", "count")] + [
            (key, value) for key, value in build_query_params(params) if key != "select"
        ]
        response = await self._send("GET", path, params=query, headers={"Prefer": "count=exact"})

        total = parse_content_range(response.headers.get("content-range"))
        if total is not None:
            return total

        body = response.json() if response.content else []
        if isinstance(body, list) and body and isinstance(body[0], dict):
            return int(body[0].get("count") or 0)
        return 0
