"""HTTP client for the notification service."""

import logging
from typing import Optional

import httpx

from cc_core_lib.clients.base import BaseServiceClient
from cc_core_lib.core.events import EventPublisher
from cc_core_lib.models import DomainEvent

logger = logging.getLogger(__name__)


class NotificationServiceClient(BaseServiceClient, EventPublisher):
    """Publishes domain events to the notification service.

    Usage:
        publisher = NotificationServiceClient(base_url="http://cc-notification-service:8011")
        engine = CompletionEngine(catalog, ledger, publisher=publisher)
    """

    service_name = "notification"

    def __init__(
        self,
        base_url: str = "http://cc-notification-service:8011",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)

    async def publish(self, event: DomainEvent) -> None:
        """POST one event.

        Raises:
            ServiceUnavailableError: Service unreachable or 5xx
            httpx.HTTPStatusError: Event rejected (4xx)
        """
        response = await self._request(
            "POST",
            "/api/v1/events",
            user_id=event.user_id,
            json=event.model_dump(mode="json"),
            correlation_id=event.event_id,
        )
        response.raise_for_status()
        logger.debug(f"Published {event.type.value} event {event.event_id} for user_id={event.user_id}")
