"""HTTP client for the electronic order backend.

Implements ElectronicOrderServicePort over httpx. Kept small and explicit:
- no hidden retries
- one request per call
- httpx errors are translated to ServiceError subclasses here
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import get_settings
from ..domain.ports import (
    ElectronicOrderServicePort,
    ServiceInvalidResponseError,
    ServiceResponseError,
    ServiceTimeoutError,
    ServiceUnavailableError,
)

logger = logging.getLogger(__name__)


class ElectronicOrderClient(ElectronicOrderServicePort):
    """Async HTTP adapter for the electronic order backend.

    Args:
        base_url: Backend base URL (defaults to SERVICE_BASE_URL)
        timeout_s: Per-request timeout (defaults to SERVICE_TIMEOUT_SECONDS)
        client: Optional pre-built ``httpx.AsyncClient`` (tests pass one with a
            ``MockTransport``); when given, the caller owns its lifecycle
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.SERVICE_BASE_URL).rstrip("/")
        self.timeout_s = timeout_s if timeout_s is not None else settings.SERVICE_TIMEOUT_SECONDS
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "ElectronicOrderClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.debug(f"{method} {url}")
        try:
            resp = await self._get_client().request(method, url, params=params, json=json)
        except httpx.TimeoutException as e:
            raise ServiceTimeoutError(f"{method} {path} timed out after {self.timeout_s}s") from e
        except httpx.RequestError as e:
            raise ServiceUnavailableError(f"{method} {path} failed: {e}") from e

        if resp.status_code >= 400:
            raise ServiceResponseError(
                f"{method} {path} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            raise ServiceInvalidResponseError(f"{method} {path} returned non-JSON body") from e

    async def _get_list(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        data = await self._request("GET", path, params=params)
        if not isinstance(data, list):
            raise ServiceInvalidResponseError(f"GET {path} expected a list, got {type(data).__name__}")
        return data

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        data = await self._request("POST", path, json=body)
        if not isinstance(data, dict):
            raise ServiceInvalidResponseError(f"POST {path} expected an object, got {type(data).__name__}")
        return data

    # Reads

    async def get_customers(self) -> List[Dict[str, Any]]:
        return await self._get_list("customers")

    async def get_customer_presets(self, short_code: str) -> Dict[str, Any]:
        data = await self._request("GET", "customer-presets", params={"shortCode": short_code})
        if not isinstance(data, dict):
            raise ServiceInvalidResponseError("GET customer-presets expected an object")
        return data

    async def get_doc_types(self, county_id: Any) -> List[Dict[str, Any]]:
        return await self._get_list("doc-types", params={"countyID": county_id})

    async def get_doc_type_helpers(self, document_type_id: Any) -> List[Dict[str, Any]]:
        return await self._get_list("doc-type-helpers", params={"documentTypeID": document_type_id})

    # Writes

    async def create_order(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._post("orders", body)

    async def add_doc(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._post("docs/add", body)

    async def update_doc(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._post("docs/update", body)

    async def remove_doc(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._post("docs/remove", body)

    async def cancel_order(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._post("orders/cancel", body)

    async def save_order(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._post("orders/save", body)
