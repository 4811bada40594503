from booking_core.infrastructure.in_memory.broker import InMemoryMessageBroker
from booking_core.infrastructure.in_memory.existence_oracle import InMemoryExistenceOracle
from booking_core.infrastructure.in_memory.idempotency_repo import InMemoryIdempotencyRepo
from booking_core.infrastructure.in_memory.outbox_repo import InMemoryOutboxRepo
from booking_core.infrastructure.in_memory.reservation_repo import (
    InMemoryReservationHistoryRepo,
    InMemoryReservationRepo,
)
from booking_core.infrastructure.in_memory.transaction_manager import InMemoryTransactionManager

__all__ = [
    "InMemoryMessageBroker",
    "InMemoryExistenceOracle",
    "InMemoryIdempotencyRepo",
    "InMemoryOutboxRepo",
    "InMemoryReservationRepo",
    "InMemoryReservationHistoryRepo",
    "InMemoryTransactionManager",
]
