"""
Fixtures compartidos.

Todo el cableado in-memory se arma por test para que ningún estado se
filtre entre pruebas. El reloj queda fijo en 2024-01-01 UTC.
"""

from datetime import date, datetime, timezone

import pytest

from booking_core.application.interfaces.clock import FakeClock
from booking_core.application.services.availability import AvailabilityService
from booking_core.application.services.existence import ExistenceChecker
from booking_core.application.use_cases.create_reservation import CreateReservationUseCase
from booking_core.application.use_cases.reservation_queries import ReservationQueries
from booking_core.application.use_cases.update_reservation_status import (
    UpdateReservationStatusUseCase,
)
from booking_core.domain.entities.reservation import Reservation, ReservationStatus
from booking_core.infrastructure.admission_lock import PropertyLockRegistry
from booking_core.infrastructure.circuit_breaker import identity_breaker, listing_breaker
from booking_core.infrastructure.in_memory import (
    InMemoryExistenceOracle,
    InMemoryIdempotencyRepo,
    InMemoryMessageBroker,
    InMemoryOutboxRepo,
    InMemoryReservationHistoryRepo,
    InMemoryReservationRepo,
    InMemoryTransactionManager,
)
from booking_core.infrastructure.messaging.event_emitter import OutboxEventEmitter

TODAY = date(2024, 1, 1)
NOW = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

PROPERTY_ID = 7
GUEST_ID = 42


@pytest.fixture
def clock():
    return FakeClock(NOW)


@pytest.fixture
def reservation_repo():
    return InMemoryReservationRepo()


@pytest.fixture
def history_repo():
    return InMemoryReservationHistoryRepo()


@pytest.fixture
def idempotency_repo():
    return InMemoryIdempotencyRepo()


@pytest.fixture
def outbox_repo():
    return InMemoryOutboxRepo()


@pytest.fixture
def tx_manager(reservation_repo, history_repo, idempotency_repo, outbox_repo):
    return InMemoryTransactionManager(
        reservation_repo, history_repo, idempotency_repo, outbox_repo
    )


@pytest.fixture
def listing_oracle():
    return InMemoryExistenceOracle(service_name="listing")


@pytest.fixture
def identity_oracle():
    return InMemoryExistenceOracle(service_name="identity")


@pytest.fixture
def existence_checker(listing_oracle, identity_oracle):
    return ExistenceChecker(listing_oracle, identity_oracle, timeout_seconds=0.2)


@pytest.fixture
def availability(reservation_repo, existence_checker, clock):
    return AvailabilityService(reservation_repo, existence_checker, clock, horizon_days=90)


@pytest.fixture
def broker():
    return InMemoryMessageBroker()


@pytest.fixture
def emitter(outbox_repo, tx_manager, clock):
    return OutboxEventEmitter(outbox_repo, tx_manager, clock)


@pytest.fixture
def admission_lock():
    return PropertyLockRegistry()


@pytest.fixture
def create_use_case(
    reservation_repo,
    history_repo,
    availability,
    existence_checker,
    admission_lock,
    tx_manager,
    emitter,
    clock,
    idempotency_repo,
):
    return CreateReservationUseCase(
        reservation_repo=reservation_repo,
        history_repo=history_repo,
        availability=availability,
        existence_checker=existence_checker,
        admission_lock=admission_lock,
        transaction_manager=tx_manager,
        event_emitter=emitter,
        clock=clock,
        idempotency_repo=idempotency_repo,
    )


@pytest.fixture
def update_use_case(reservation_repo, history_repo, tx_manager, emitter, clock):
    return UpdateReservationStatusUseCase(
        reservation_repo=reservation_repo,
        history_repo=history_repo,
        transaction_manager=tx_manager,
        event_emitter=emitter,
        clock=clock,
    )


@pytest.fixture
def queries(reservation_repo, history_repo):
    return ReservationQueries(reservation_repo, history_repo)


@pytest.fixture
def seed_reservation(reservation_repo):
    """Inserta una reservación directamente en el repo, sin pasar por la admisión."""

    async def _seed(
        check_in: date,
        check_out: date,
        status: ReservationStatus = ReservationStatus.CONFIRMED,
        property_id: int = PROPERTY_ID,
        guest_id: int = GUEST_ID,
    ) -> Reservation:
        return await reservation_repo.add(
            Reservation(
                property_id=property_id,
                guest_id=guest_id,
                check_in=check_in,
                check_out=check_out,
                status=status,
                created_at=NOW,
            )
        )

    return _seed


@pytest.fixture(autouse=True)
def reset_circuit_breakers():
    """Evita que un breaker abierto por un test afecte al siguiente."""
    listing_breaker.close()
    identity_breaker.close()
    yield
    listing_breaker.close()
    identity_breaker.close()
