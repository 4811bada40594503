from booking_core.infrastructure.db.repositories.idempotency_repo_sql import IdempotencyRepoSQL
from booking_core.infrastructure.db.repositories.outbox_repo_sql import OutboxRepoSQL
from booking_core.infrastructure.db.repositories.reservation_repo_sql import (
    ReservationHistoryRepoSQL,
    ReservationRepoSQL,
)

__all__ = [
    "IdempotencyRepoSQL",
    "OutboxRepoSQL",
    "ReservationHistoryRepoSQL",
    "ReservationRepoSQL",
]
