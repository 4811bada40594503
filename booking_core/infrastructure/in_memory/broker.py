import logging
from typing import Any

from booking_core.application.interfaces.event_emitter import MessageBroker

logger = logging.getLogger(__name__)


class InMemoryMessageBroker(MessageBroker):
    def __init__(self) -> None:
        self.published: list[tuple[str, dict[str, Any]]] = []
        self.fail_next = 0

    async def publish(self, topic: str, message: dict[str, Any]) -> None:
        if self.fail_next > 0:
            self.fail_next -= 1
            raise ConnectionError(f"broker rejected {topic}")
        self.published.append((topic, dict(message)))
        logger.debug("Message published", extra={"topic": topic})
