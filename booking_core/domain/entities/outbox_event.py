"""Entidad OutboxEvent - representa un hecho pendiente de publicar."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class OutboxStatus(str, Enum):
    """Estados de un evento en el outbox."""

    NEW = "NEW"
    IN_PROGRESS = "IN_PROGRESS"
    RETRY = "RETRY"
    DONE = "DONE"
    FAILED = "FAILED"


class EventTopic(str, Enum):
    """Tópicos publicados hacia el broker."""

    RESERVATION_CREATED = "reservation-created"
    RESERVATION_CONFIRMED = "reservation-confirmed"


@dataclass
class OutboxEvent:
    """
    Evento del patrón Outbox.

    Desacopla la publicación de hechos (notificaciones) de la transacción
    que crea o actualiza la reservación. La entrega es at-least-once; los
    consumidores deben deduplicar por reservation_id.
    """

    topic: str
    aggregate_id: int
    payload: dict[str, Any] = field(default_factory=dict)

    id: int | None = None
    status: OutboxStatus = OutboxStatus.NEW

    # Reintentos
    attempts: int = 0
    next_attempt_at: datetime | None = None
    last_error: str | None = None

    # Locking para procesamiento concurrente
    locked_by: str | None = None
    lock_expires_at: datetime | None = None

    created_at: datetime | None = None

    @property
    def is_final(self) -> bool:
        """Verifica si el evento está en un estado final."""
        return self.status in (OutboxStatus.DONE, OutboxStatus.FAILED)

    def is_ready(self, now: datetime) -> bool:
        """Verifica si el evento puede reclamarse en el instante dado."""
        if self.status not in (OutboxStatus.NEW, OutboxStatus.RETRY):
            return False
        if self.next_attempt_at and self.next_attempt_at > now:
            return False
        if self.locked_by and self.lock_expires_at and self.lock_expires_at > now:
            return False
        return True
