"""
Back-office API Client

HTTP client for the inventory/sales back office the terminal talks to:
catalog reads, transaction submission, notification persistence, tenant
settings and paired-device lookups.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from ..errors import BackOfficeError, NotificationPersistenceError
from ..models.notification import Notification
from ..models.product import ConnectedDevice, ProductSnapshot

logger = logging.getLogger(__name__)


def unwrap(payload: Any, key: Optional[str] = None) -> Any:
    """
    Strip `data` envelopes from a back-office response.

    Responses come as the bare value, `{"data": value}` or, for paginated
    lists, `{"data": {"data": [...]}}`. When `key` is given and the
    innermost object holds it, that entry is returned instead.
    """
    while isinstance(payload, dict):
        if key and key in payload:
            return payload[key]
        if "data" not in payload:
            break
        payload = payload["data"]
    return payload


class BackOfficeClient:
    """
    Client for the back-office REST API.

    Every failure (transport error or HTTP status >= 400) is raised as
    BackOfficeError so callers handle a single network error type.
    """

    def __init__(
        self,
        base_url: str,
        api_token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize back-office client.

        Args:
            base_url: Base URL of the back-office API
            api_token: Bearer token sent with every request
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used to fake the API in tests)
        """
        self.base_url = base_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"
        self._http_client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "BackOfficeClient":
        """Create client from application settings"""
        return cls(
            base_url=settings.backoffice_base_url,
            api_token=settings.backoffice_api_token,
            timeout=settings.request_timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
    ) -> Any:
        """Make an HTTP request and return the decoded JSON body"""
        try:
            response = await self._http_client.request(method, path, json=body)
        except httpx.HTTPError as e:
            logger.error(f"Request failed: {method} {path} - {e}")
            raise BackOfficeError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Request failed: {response.status_code} - {response.text}")
            raise BackOfficeError(
                _error_message(response) or f"{method} {path} returned {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from {method} {path}: {response.text[:200]}")
            raise BackOfficeError(
                f"{method} {path} returned invalid JSON",
                status_code=response.status_code,
            ) from e

    # ==================== Catalog APIs ====================

    async def list_products(self) -> list[ProductSnapshot]:
        """Fetch the product catalog"""
        payload = unwrap(await self._request("GET", "/inventory/products"))
        if not isinstance(payload, list):
            raise BackOfficeError("Unexpected product list response")
        try:
            return [ProductSnapshot.model_validate(p) for p in payload]
        except ValidationError as e:
            raise BackOfficeError(f"Invalid product record: {e.error_count()} field error(s)") from e

    async def get_tenant_settings(self) -> dict[str, Any]:
        """Fetch tenant settings (tax configuration lives here)"""
        payload = unwrap(await self._request("GET", "/tenant/settings"))
        return payload if isinstance(payload, dict) else {}

    # ==================== Sales APIs ====================

    async def create_transaction(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Submit a sale; returns the transaction record sent back"""
        result = unwrap(await self._request("POST", "/sales/transactions", body=payload))
        return result if isinstance(result, dict) else {}

    # ==================== Notification APIs ====================

    async def create_notification(self, body: dict[str, Any]) -> dict[str, Any]:
        """Store a notification in the back office"""
        return await self._request("POST", "/notifications", body=body)

    async def persist(self, notification: Notification) -> None:
        """Mirror a session notification to the durable store"""
        try:
            await self.create_notification(notification.to_persist_body())
        except BackOfficeError as e:
            raise NotificationPersistenceError(str(e), status_code=e.status_code) from e

    # ==================== Mobile device APIs ====================

    async def list_devices(self) -> list[ConnectedDevice]:
        """List paired mobile devices"""
        devices = unwrap(await self._request("GET", "/mobile/devices"), key="devices")
        return [ConnectedDevice.model_validate(d) for d in devices or []]

    async def generate_connection_code(self) -> dict[str, Any]:
        """Ask the back office to issue a pairing code"""
        return unwrap(await self._request("POST", "/mobile/generate-code"))

    async def revoke_connection_code(self, code: str) -> dict[str, Any]:
        """Revoke a pairing code"""
        return await self._request("POST", "/mobile/revoke-code", body={"connection_code": code})


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("message") or body.get("detail")
    return None
