"""
Client for the service registry.

The registry exposes three endpoints: POST /register, POST /deregister
and GET /find/<name>. Transient failures (connection errors, 5xx) are
retried with exponential backoff.
"""

from typing import Optional

import httpx

from shared.logging import get_logger
from shared.retry import RetryConfig, RetryError, retry_on_exception


class DiscoveryError(Exception):
    """Raised when the registry cannot be reached or rejects a call."""


class DiscoveryClient:
    """Registers this service and resolves others by name."""

    def __init__(
        self,
        url: str,
        service_name: str,
        address: str,
        timeout: float = 5.0,
        retry_config: Optional[RetryConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url.rstrip("/")
        self.service_name = service_name
        self.address = address
        self.timeout = timeout
        self.transport = transport
        self.logger = get_logger("seo.discovery.client")
        self._send = retry_on_exception((httpx.HTTPError,), retry_config)(self._send_once)

    async def _send_once(self, method: str, path: str, payload: Optional[dict] = None) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.request(method, f"{self.url}{path}", json=payload)
        if response.status_code >= 500:
            response.raise_for_status()
        return response

    async def _call(self, method: str, path: str, payload: Optional[dict] = None) -> httpx.Response:
        try:
            response = await self._send(method, path, payload)
        except RetryError as e:
            raise DiscoveryError(f"registry unavailable: {e.last_exception}") from e
        if response.is_error:
            self.logger.warning(
                "Registry call rejected",
                path=path,
                status_code=response.status_code,
                response=response.text
            )
            raise DiscoveryError(f"registry returned {response.status_code} for {path}")
        return response

    async def register(self) -> None:
        """Announce this service's address to the registry."""
        await self._call("POST", "/register", {"name": self.service_name, "address": self.address})
        self.logger.info("Service registered", name=self.service_name, address=self.address)

    async def deregister(self) -> None:
        """Withdraw this service from the registry."""
        await self._call("POST", "/deregister", {"name": self.service_name, "address": self.address})
        self.logger.info("Service deregistered", name=self.service_name)

    async def find_service_by_name(self, name: str) -> str:
        """Resolve a service name to its announced address."""
        response = await self._call("GET", f"/find/{name}")
        address = response.json().get("address")
        if not address:
            raise DiscoveryError(f"no address registered for {name}")
        return address
