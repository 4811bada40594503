"""Worker para publicar los eventos del Outbox hacia el broker."""

import asyncio
import logging
from datetime import timedelta
from uuid import uuid4

from booking_core.application.interfaces.clock import Clock
from booking_core.application.interfaces.event_emitter import MessageBroker
from booking_core.application.interfaces.outbox_repo import OutboxRepo
from booking_core.application.interfaces.transaction_manager import TransactionManager
from booking_core.domain.entities.outbox_event import OutboxEvent

logger = logging.getLogger(__name__)


class OutboxWorker:
    """
    Worker que drena el outbox hacia el MessageBroker.

    Características:
    - Polling configurable
    - Backoff exponencial en reintentos
    - Lock por evento (locked_by + lock_expires_at) para no publicar dos veces en paralelo
    - Graceful shutdown

    La entrega es at-least-once: si el proceso muere entre publish y
    mark_done, el evento se vuelve a publicar cuando expira su lock.
    """

    def __init__(
        self,
        outbox_repo: OutboxRepo,
        broker: MessageBroker,
        clock: Clock,
        transaction_manager: TransactionManager,
        worker_id: str | None = None,
        poll_interval_seconds: float = 2.0,
        batch_size: int = 20,
        lock_duration_seconds: int = 300,
        max_attempts: int = 5,
        retry_base_seconds: int = 30,
    ) -> None:
        """
        Inicializa el worker.

        Args:
            outbox_repo: Repositorio de eventos outbox.
            broker: Transporte hacia los consumidores.
            clock: Servicio de reloj.
            transaction_manager: Delimita cada cambio de estado del outbox.
            worker_id: Identificador único del worker (auto-generado si no se provee).
            poll_interval_seconds: Espera entre polls cuando no hay eventos.
            batch_size: Número máximo de eventos a procesar por ciclo.
            lock_duration_seconds: Duración del lock en segundos.
            max_attempts: Intentos antes de marcar el evento como FAILED.
            retry_base_seconds: Base del backoff exponencial.
        """
        self._outbox_repo = outbox_repo
        self._broker = broker
        self._clock = clock
        self._transaction_manager = transaction_manager
        self._worker_id = worker_id or f"worker-{uuid4().hex[:8]}"
        self._poll_interval = poll_interval_seconds
        self._batch_size = batch_size
        self._lock_duration = lock_duration_seconds
        self._max_attempts = max_attempts
        self._retry_base = retry_base_seconds
        self._running = False
        self._stopped = asyncio.Event()
        self.publish_failures = 0

    @property
    def worker_id(self) -> str:
        return self._worker_id

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Inicia el worker en modo polling hasta que se llame a stop()."""
        self._running = True
        self._stopped.clear()
        logger.info("Outbox worker started", extra={"worker_id": self._worker_id})

        while self._running:
            try:
                processed = await self.process_batch()
            except Exception:
                logger.exception("Outbox worker cycle failed", extra={"worker_id": self._worker_id})
                processed = 0
            if processed == 0:
                try:
                    await asyncio.wait_for(self._stopped.wait(), timeout=self._poll_interval)
                except asyncio.TimeoutError:
                    pass

    async def stop(self) -> None:
        """Detiene el worker de forma graceful."""
        self._running = False
        self._stopped.set()
        logger.info("Outbox worker stopped", extra={"worker_id": self._worker_id})

    async def process_batch(self) -> int:
        """
        Reclama y publica un batch de eventos listos.

        Returns:
            Número de eventos reclamados en este ciclo.
        """
        async with self._transaction_manager.start():
            events = await self._outbox_repo.claim_ready(
                limit=self._batch_size,
                locked_by=self._worker_id,
                now=self._clock.now(),
                lock_ttl_seconds=self._lock_duration,
            )

        for event in events:
            await self._publish(event)
        return len(events)

    async def _publish(self, event: OutboxEvent) -> None:
        try:
            await self._broker.publish(event.topic, event.payload)
        except Exception as exc:
            self.publish_failures += 1
            await self._handle_failure(event, exc)
            return

        async with self._transaction_manager.start():
            await self._outbox_repo.mark_done(event.id)
        logger.info(
            "Outbox event published",
            extra={"event_id": event.id, "topic": event.topic, "reservation_id": event.aggregate_id},
        )

    async def _handle_failure(self, event: OutboxEvent, exc: Exception) -> None:
        attempts = event.attempts + 1
        error_message = f"{type(exc).__name__}: {exc}"

        if attempts >= self._max_attempts:
            logger.error(
                "Outbox event exceeded max attempts",
                exc_info=exc,
                extra={
                    "event_id": event.id,
                    "topic": event.topic,
                    "attempts": attempts,
                    "max_attempts": self._max_attempts,
                },
            )
            async with self._transaction_manager.start():
                await self._outbox_repo.mark_failed(event.id, attempts, error_message)
            return

        backoff_seconds = self._retry_base * (2 ** (attempts - 1))
        next_attempt = self._clock.now() + timedelta(seconds=backoff_seconds)
        logger.info(
            "Outbox event scheduled for retry",
            extra={
                "event_id": event.id,
                "topic": event.topic,
                "attempts": attempts,
                "next_attempt_at": next_attempt.isoformat(),
                "error": error_message,
            },
        )
        async with self._transaction_manager.start():
            await self._outbox_repo.mark_retry(
                event_id=event.id,
                attempts=attempts,
                next_attempt_at=next_attempt,
                error_message=error_message,
            )
