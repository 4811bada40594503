import logging
from typing import Any

import httpx

from booking_core.application.interfaces.event_emitter import MessageBroker

logger = logging.getLogger(__name__)


class NotificationBrokerHTTP(MessageBroker):
    """
    Posts each fact to the notification service.

    Delivery is at-least-once, so the reservation id travels as the
    Idempotency-Key and the consumer drops duplicates. Non-2xx answers raise
    so the outbox retries.
    """

    def __init__(self, url: str, timeout_seconds: float = 5.0) -> None:
        self._url = url
        self._timeout = timeout_seconds

    async def publish(self, topic: str, message: dict[str, Any]) -> None:
        headers = {"Idempotency-Key": f"{topic}:{message.get('reservation_id')}"}
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(
                self._url,
                json={"topic": topic, "fact": message},
                headers=headers,
            )
        response.raise_for_status()
        logger.info(
            "Fact delivered to notification service",
            extra={"topic": topic, "status_code": response.status_code},
        )
