import logging
from typing import Any

from booking_core.application.interfaces.clock import Clock
from booking_core.application.interfaces.event_emitter import EventEmitter
from booking_core.application.interfaces.outbox_repo import OutboxRepo
from booking_core.application.interfaces.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)


class OutboxEventEmitter(EventEmitter):
    """
    Emisor que encola cada hecho en el outbox en su propia transacción.

    Un fallo al encolar se registra y se cuenta en ``failures``; nunca llega
    al llamador porque la reservación ya quedó confirmada.
    """

    def __init__(
        self,
        outbox_repo: OutboxRepo,
        transaction_manager: TransactionManager,
        clock: Clock,
    ) -> None:
        self._outbox_repo = outbox_repo
        self._transaction_manager = transaction_manager
        self._clock = clock
        self.failures = 0

    async def emit(self, topic: str, fact: dict[str, Any]) -> None:
        aggregate_id = fact.get("reservation_id")
        try:
            async with self._transaction_manager.start():
                event = await self._outbox_repo.enqueue(
                    topic=topic,
                    aggregate_id=aggregate_id,
                    payload=fact,
                    now=self._clock.now(),
                )
        except Exception as exc:
            self.failures += 1
            logger.error(
                "Failed to enqueue fact",
                exc_info=exc,
                extra={"topic": topic, "reservation_id": aggregate_id, "failures": self.failures},
            )
            return
        logger.debug(
            "Fact enqueued",
            extra={"topic": topic, "reservation_id": aggregate_id, "event_id": event.id},
        )
