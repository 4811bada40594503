"""
Capa de Dominio - Motor de reservaciones.

Esta capa contiene la lógica de negocio pura, sin dependencias de frameworks.

Estructura:
- entities/: Reservation, ReservationHistory, OutboxEvent
- value_objects/: StayRange y el predicado de solapamiento
- errors.py: Excepciones específicas del dominio
"""

from booking_core.domain.entities import (
    ACTIVE_STATUSES,
    ALLOWED_TRANSITIONS,
    EventTopic,
    OutboxEvent,
    OutboxStatus,
    Reservation,
    ReservationHistory,
    ReservationStatus,
)
from booking_core.domain.errors import (
    ConflictError,
    DomainError,
    IdempotencyConflictError,
    InvalidRangeError,
    InvalidStatusTransitionError,
    NotFoundError,
    PersistenceError,
    UpstreamUnavailableError,
)
from booking_core.domain.value_objects import StayRange

__all__ = [
    # Entities
    "Reservation",
    "ReservationStatus",
    "ReservationHistory",
    "ACTIVE_STATUSES",
    "ALLOWED_TRANSITIONS",
    "OutboxEvent",
    "OutboxStatus",
    "EventTopic",
    # Value Objects
    "StayRange",
    # Errors
    "DomainError",
    "InvalidRangeError",
    "NotFoundError",
    "UpstreamUnavailableError",
    "ConflictError",
    "InvalidStatusTransitionError",
    "PersistenceError",
    "IdempotencyConflictError",
]
