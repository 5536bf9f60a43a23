"""Async HTTP client for the lab API"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Union

import httpx

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Đã xảy ra lỗi"

DICTIONARY_RESOURCES = ("categories", "companies", "costs", "customers", "kit-types", "sample-types")


class ApiError(Exception):
    """Non-2xx answer; `message` is the server's localized error text"""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def __repr__(self):
        return f"ApiError({self.status_code}, {self.message!r})"


class LabApiClient:
    """One method per endpoint; returns the `data` part of each answer"""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000/api/v1",
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None):
        self.token = token
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "LabApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        response = await self._client.request(method, url, headers=self._headers(), **kwargs)
        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error:
            message = body.get("error") if isinstance(body, dict) else None
            logger.warning(f"{method} {url} -> {response.status_code}: {message}")
            raise ApiError(response.status_code, message or DEFAULT_ERROR_MESSAGE)
        return body

    # ===== Auth =====
    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """Sign in and keep the token for later calls"""
        body = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = body["data"]["access_token"]
        return body["data"]["user"]

    async def me(self) -> Dict[str, Any]:
        return (await self._request("GET", "/auth/me"))["data"]

    # ===== Dictionaries =====
    async def list_dictionary(
        self,
        resource: str,
        active_only: bool = True,
        search: Optional[str] = None) -> List[Dict[str, Any]]:
        if resource not in DICTIONARY_RESOURCES:
            raise ValueError(f"Unknown dictionary: {resource}")
        params: Dict[str, Any] = {"active_only": str(active_only).lower()}
        if search:
            params["search"] = search
        return (await self._request("GET", f"/dicts/{resource}", params=params))["data"]

    # ===== Kits =====
    async def kit_availability(self, kit_type_id: Optional[int] = None) -> List[Dict[str, Any]]:
        params = {"kit_type_id": kit_type_id} if kit_type_id is not None else None
        return (await self._request("GET", "/kits/availability", params=params))["data"]

    async def bulk_create_kits(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return (await self._request("POST", "/kits/bulk-create", json=payload))["data"]

    async def bulk_adjust_kits(self, kit_type_id: int, delta: int, reason: Optional[str] = None) -> Dict[str, Any]:
        payload = {"kit_type_id": kit_type_id, "delta": delta, "reason": reason}
        return (await self._request("POST", "/kits/bulk-adjust", json=payload))["data"]

    # ===== Samples =====
    async def list_samples(
        self,
        page: int = 1,
        page_size: Optional[int] = None,
        status: Optional[str] = None,
        billing_status: Optional[str] = None,
        customer: Optional[str] = None) -> Dict[str, Any]:
        """Returns the whole body: data plus pagination"""
        params: Dict[str, Any] = {"page": page}
        if page_size:
            params["pageSize"] = page_size
        if status:
            params["status"] = status
        if billing_status:
            params["billingStatus"] = billing_status
        if customer:
            params["customer"] = customer
        return await self._request("GET", "/samples", params=params)

    async def create_sample(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return (await self._request("POST", "/samples", json=payload))["data"]

    async def next_sample_code(self, received_at: Union[date, str]) -> str:
        if isinstance(received_at, date):
            received_at = received_at.isoformat()
        body = await self._request("GET", "/samples/next-code", params={"receivedAt": received_at})
        return body["data"]["sample_code"]

    async def get_sample(self, sample_id: int) -> Dict[str, Any]:
        return (await self._request("GET", f"/samples/{sample_id}"))["data"]

    async def update_sample(self, sample_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        return (await self._request("PATCH", f"/samples/{sample_id}", json=payload))["data"]

    async def replace_results(self, sample_id: int, results: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        body = await self._request("PATCH", f"/samples/{sample_id}/results", json={"results": results})
        return body["data"]

    async def report_message(self, sample_id: int) -> Dict[str, Any]:
        return (await self._request("GET", f"/samples/{sample_id}/report-message"))["data"]
