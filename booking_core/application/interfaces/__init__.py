"""Interfaces (Puertos) de la capa de aplicación."""

from booking_core.application.interfaces.admission_lock import AdmissionLock
from booking_core.application.interfaces.clock import Clock, FakeClock, SystemClock
from booking_core.application.interfaces.event_emitter import EventEmitter, MessageBroker
from booking_core.application.interfaces.existence_oracle import ExistenceOracle
from booking_core.application.interfaces.idempotency_repo import (
    IdempotencyRecord,
    IdempotencyRepo,
)
from booking_core.application.interfaces.outbox_repo import OutboxRepo
from booking_core.application.interfaces.reservation_repo import (
    ReservationHistoryRepo,
    ReservationRepo,
)
from booking_core.application.interfaces.transaction_manager import TransactionManager

__all__ = [
    # Repositories
    "ReservationRepo",
    "ReservationHistoryRepo",
    "OutboxRepo",
    "IdempotencyRepo",
    "IdempotencyRecord",
    # Gateways
    "ExistenceOracle",
    "EventEmitter",
    "MessageBroker",
    # Infrastructure
    "TransactionManager",
    "AdmissionLock",
    # Utilities
    "Clock",
    "SystemClock",
    "FakeClock",
]
