"""Entidades del dominio de reservaciones."""

from booking_core.domain.entities.outbox_event import EventTopic, OutboxEvent, OutboxStatus
from booking_core.domain.entities.reservation import (
    ACTIVE_STATUSES,
    ALLOWED_TRANSITIONS,
    Reservation,
    ReservationStatus,
)
from booking_core.domain.entities.reservation_history import ReservationHistory

__all__ = [
    # Reservation
    "Reservation",
    "ReservationStatus",
    "ACTIVE_STATUSES",
    "ALLOWED_TRANSITIONS",
    "ReservationHistory",
    # OutboxEvent
    "OutboxEvent",
    "OutboxStatus",
    "EventTopic",
]
