"""Base service client for calls to the ledger and notification services."""

import logging
from typing import Any, Optional

import httpx

from cc_core_lib.exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)


class BaseServiceClient:
    """Base class for internal service-to-service HTTP clients.

    User context is propagated via the X-User-ID header. Transport failures and
    5xx responses are raised as ServiceUnavailableError so the engine's retry
    policy can pick them up; every other status is left to the subclass.

    Usage:
        class WalletClient(BaseServiceClient):
            service_name = "ledger"

            async def get_wallet(self, user_id: str) -> Wallet:
                response = await self._request("GET", f"/api/v1/wallets/{user_id}", user_id=user_id)
                response.raise_for_status()
                return Wallet(**response.json())
    """

    service_name: str = "service"

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize service client.

        Args:
            base_url: Service base URL (e.g., http://cc-ledger-service:8010)
            timeout: Request timeout in seconds (default: 30.0)
            transport: Optional httpx transport (e.g., httpx.MockTransport in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

        logger.info(f"Initialized {self.__class__.__name__} with base_url={self.base_url}")

    def _headers(
        self,
        user_id: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> dict:
        headers = {
            "Content-Type": "application/json",
        }
        if user_id:
            headers["X-User-ID"] = user_id
        if correlation_id:
            headers["X-Correlation-ID"] = correlation_id
        return headers

    def _get_client(self) -> httpx.AsyncClient:
        """Get HTTP client instance with configured timeout.

        Returns:
            Configured AsyncClient ready for use with async context manager
        """
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def _request(
        self,
        method: str,
        path: str,
        user_id: Optional[str] = None,
        json: Optional[Any] = None,
        correlation_id: Optional[str] = None,
    ) -> httpx.Response:
        """Send one request.

        Raises:
            ServiceUnavailableError: Connection/timeout failure or 5xx response
        """
        try:
            async with self._get_client() as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    json=json,
                    headers=self._headers(user_id=user_id, correlation_id=correlation_id),
                )
        except httpx.TransportError as e:
            logger.warning(f"{self.service_name} unreachable: {method} {path}: {e}")
            raise ServiceUnavailableError(self.service_name, e) from e

        if response.status_code >= 500:
            logger.warning(f"{self.service_name} returned {response.status_code}: {method} {path}")
            raise ServiceUnavailableError(
                self.service_name,
                httpx.HTTPStatusError(
                    f"{response.status_code} from {self.service_name}",
                    request=response.request,
                    response=response,
                ),
            )
        return response

    async def close(self):
        """Close any persistent connections.

        Override this if your client maintains a persistent httpx.AsyncClient.
        """
        pass
