import asyncio
from contextlib import asynccontextmanager
from datetime import date

import pytest

from booking_core.application.interfaces.existence_oracle import ExistenceOracle
from booking_core.application.services.availability import AvailabilityService
from booking_core.application.services.existence import ExistenceChecker
from booking_core.application.use_cases.create_reservation import CreateReservationUseCase
from booking_core.domain.entities.outbox_event import EventTopic
from booking_core.domain.entities.reservation import ReservationStatus
from booking_core.domain.errors import (
    ConflictError,
    IdempotencyConflictError,
    InvalidRangeError,
    NotFoundError,
)
from booking_core.infrastructure.admission_lock import PropertyLockRegistry
from booking_core.infrastructure.in_memory import (
    InMemoryExistenceOracle,
    InMemoryReservationHistoryRepo,
    InMemoryReservationRepo,
    InMemoryTransactionManager,
)
from booking_core.infrastructure.messaging.event_emitter import OutboxEventEmitter

PROPERTY_ID = 7
GUEST_ID = 42


class SlowOracle(ExistenceOracle):
    service_name = "listing"

    async def exists(self, entity_id: int) -> bool:
        await asyncio.sleep(5)
        return True


class InterleavingReservationRepo(InMemoryReservationRepo):
    """Cede el event loop después de contar, como lo haría una BD real."""

    async def count_overlapping(self, property_id, check_in, check_out):
        result = await super().count_overlapping(property_id, check_in, check_out)
        await asyncio.sleep(0.01)
        return result


class BrokenHistoryRepo(InMemoryReservationHistoryRepo):
    async def append(self, entry):
        raise RuntimeError("history store down")


class BrokenOutboxRepo:
    async def enqueue(self, topic, aggregate_id, payload, now):
        raise RuntimeError("outbox unavailable")


class NoLock:
    @asynccontextmanager
    async def hold(self, key):
        yield


def _build(reservation_repo, history_repo, clock, lock, outbox_repo, existence_checker=None):
    existence_checker = existence_checker or ExistenceChecker(
        InMemoryExistenceOracle("listing"), InMemoryExistenceOracle("identity")
    )
    tx_manager = InMemoryTransactionManager(reservation_repo, history_repo, outbox_repo)
    availability = AvailabilityService(reservation_repo, existence_checker, clock)
    return CreateReservationUseCase(
        reservation_repo=reservation_repo,
        history_repo=history_repo,
        availability=availability,
        existence_checker=existence_checker,
        admission_lock=lock,
        transaction_manager=tx_manager,
        event_emitter=OutboxEventEmitter(outbox_repo, tx_manager, clock),
        clock=clock,
    )


class TestCreateReservation:
    async def test_creates_pending_reservation_with_history(
        self, create_use_case, history_repo, clock
    ):
        reservation = await create_use_case.execute(
            PROPERTY_ID, GUEST_ID, date(2024, 2, 1), date(2024, 2, 5)
        )

        assert reservation.id is not None
        assert reservation.status == ReservationStatus.PENDING
        assert reservation.created_at == clock.now()
        history = await history_repo.list_by_reservation(reservation.id)
        assert [(h.status, h.changed_at) for h in history] == [
            (ReservationStatus.PENDING, clock.now())
        ]

    async def test_enqueues_created_fact(self, create_use_case, outbox_repo):
        reservation = await create_use_case.execute(
            PROPERTY_ID, GUEST_ID, date(2024, 2, 1), date(2024, 2, 5)
        )

        events = outbox_repo.events
        assert len(events) == 1
        assert events[0].topic == EventTopic.RESERVATION_CREATED.value
        assert events[0].aggregate_id == reservation.id
        assert events[0].payload == {
            "reservation_id": reservation.id,
            "property_id": PROPERTY_ID,
            "guest_contact": f"identity:{GUEST_ID}",
            "check_in": "2024-02-01",
            "check_out": "2024-02-05",
            "status": "PENDING",
        }

    async def test_overlapping_request_raises_conflict(self, create_use_case, reservation_repo):
        await create_use_case.execute(PROPERTY_ID, GUEST_ID, date(2024, 2, 1), date(2024, 2, 5))

        with pytest.raises(ConflictError) as exc_info:
            await create_use_case.execute(PROPERTY_ID, 43, date(2024, 2, 5), date(2024, 2, 8))

        assert exc_info.value.context["property_id"] == PROPERTY_ID
        assert len(reservation_repo.reservations) == 1

    async def test_cancelled_reservation_does_not_conflict(self, create_use_case, seed_reservation):
        await seed_reservation(date(2024, 2, 1), date(2024, 2, 5), status=ReservationStatus.CANCELLED)

        reservation = await create_use_case.execute(
            PROPERTY_ID, GUEST_ID, date(2024, 2, 2), date(2024, 2, 4)
        )

        assert reservation.status == ReservationStatus.PENDING


class TestValidationOrder:
    async def test_invalid_range_before_remote_calls(self, create_use_case, listing_oracle):
        with pytest.raises(InvalidRangeError):
            await create_use_case.execute(PROPERTY_ID, GUEST_ID, date(2024, 2, 5), date(2024, 2, 1))

        assert listing_oracle.calls == []

    async def test_past_check_in_is_rejected(self, create_use_case):
        with pytest.raises(InvalidRangeError) as exc_info:
            await create_use_case.execute(PROPERTY_ID, GUEST_ID, date(2023, 12, 30), date(2024, 1, 3))

        assert "pasado" in exc_info.value.reason

    async def test_check_out_beyond_window_is_rejected(self, create_use_case):
        with pytest.raises(InvalidRangeError):
            await create_use_case.execute(PROPERTY_ID, GUEST_ID, date(2024, 3, 28), date(2024, 4, 1))

    async def test_check_out_on_window_end_is_accepted(self, create_use_case):
        reservation = await create_use_case.execute(
            PROPERTY_ID, GUEST_ID, date(2024, 3, 28), date(2024, 3, 31)
        )

        assert reservation.check_out == date(2024, 3, 31)

    async def test_check_in_today_is_accepted(self, create_use_case):
        reservation = await create_use_case.execute(
            PROPERTY_ID, GUEST_ID, date(2024, 1, 1), date(2024, 1, 2)
        )

        assert reservation.check_in == date(2024, 1, 1)

    async def test_property_checked_before_guest(
        self, create_use_case, listing_oracle, identity_oracle
    ):
        listing_oracle.seed(1)

        with pytest.raises(NotFoundError) as exc_info:
            await create_use_case.execute(PROPERTY_ID, GUEST_ID, date(2024, 2, 1), date(2024, 2, 5))

        assert exc_info.value.kind == "property"
        assert identity_oracle.calls == []

    async def test_unknown_guest(self, create_use_case, identity_oracle, reservation_repo):
        identity_oracle.seed(1)

        with pytest.raises(NotFoundError) as exc_info:
            await create_use_case.execute(PROPERTY_ID, GUEST_ID, date(2024, 2, 1), date(2024, 2, 5))

        assert exc_info.value.kind == "guest"
        assert reservation_repo.reservations == {}

    async def test_conflict_checked_after_existence(
        self, create_use_case, seed_reservation, identity_oracle
    ):
        await seed_reservation(date(2024, 2, 1), date(2024, 2, 5))
        identity_oracle.seed(1)

        with pytest.raises(NotFoundError):
            await create_use_case.execute(PROPERTY_ID, GUEST_ID, date(2024, 2, 1), date(2024, 2, 5))


class TestFailClosedExistence:
    async def test_listing_timeout_is_treated_as_missing(
        self, reservation_repo, history_repo, outbox_repo, clock
    ):
        checker = ExistenceChecker(SlowOracle(), InMemoryExistenceOracle("identity"), timeout_seconds=0.05)
        use_case = _build(
            reservation_repo, history_repo, clock, PropertyLockRegistry(), outbox_repo, checker
        )

        with pytest.raises(NotFoundError) as exc_info:
            await use_case.execute(PROPERTY_ID, GUEST_ID, date(2024, 2, 1), date(2024, 2, 5))

        assert exc_info.value.kind == "property"
        assert reservation_repo.reservations == {}

    async def test_identity_outage_is_treated_as_missing(self, create_use_case, identity_oracle):
        identity_oracle.unavailable = True

        with pytest.raises(NotFoundError) as exc_info:
            await create_use_case.execute(PROPERTY_ID, GUEST_ID, date(2024, 2, 1), date(2024, 2, 5))

        assert exc_info.value.kind == "guest"


class TestAtomicity:
    async def test_history_failure_rolls_back_reservation(self, clock, outbox_repo):
        reservation_repo = InMemoryReservationRepo()
        use_case = _build(
            reservation_repo, BrokenHistoryRepo(), clock, PropertyLockRegistry(), outbox_repo
        )

        with pytest.raises(RuntimeError):
            await use_case.execute(PROPERTY_ID, GUEST_ID, date(2024, 2, 1), date(2024, 2, 5))

        assert reservation_repo.reservations == {}
        assert outbox_repo.events == []

    async def test_publication_failure_does_not_fail_creation(
        self, reservation_repo, history_repo, clock, existence_checker
    ):
        tx_manager = InMemoryTransactionManager(reservation_repo, history_repo)
        emitter = OutboxEventEmitter(BrokenOutboxRepo(), tx_manager, clock)
        use_case = CreateReservationUseCase(
            reservation_repo=reservation_repo,
            history_repo=history_repo,
            availability=AvailabilityService(reservation_repo, existence_checker, clock),
            existence_checker=existence_checker,
            admission_lock=PropertyLockRegistry(),
            transaction_manager=tx_manager,
            event_emitter=emitter,
            clock=clock,
        )

        reservation = await use_case.execute(PROPERTY_ID, GUEST_ID, date(2024, 2, 1), date(2024, 2, 5))

        assert reservation.id in reservation_repo.reservations
        assert emitter.failures == 1


class TestIdempotentCreate:
    async def test_same_key_same_payload_replays(self, create_use_case, reservation_repo, outbox_repo):
        first = await create_use_case.execute(
            PROPERTY_ID, GUEST_ID, date(2024, 2, 1), date(2024, 2, 5), idem_key="k-1"
        )
        second = await create_use_case.execute(
            PROPERTY_ID, GUEST_ID, date(2024, 2, 1), date(2024, 2, 5), idem_key="k-1"
        )

        assert second.id == first.id
        assert len(reservation_repo.reservations) == 1
        assert len(outbox_repo.events) == 1

    async def test_same_key_different_payload_conflicts(self, create_use_case):
        await create_use_case.execute(
            PROPERTY_ID, GUEST_ID, date(2024, 2, 1), date(2024, 2, 5), idem_key="k-2"
        )

        with pytest.raises(IdempotencyConflictError):
            await create_use_case.execute(
                PROPERTY_ID, GUEST_ID, date(2024, 2, 10), date(2024, 2, 12), idem_key="k-2"
            )

    async def test_rejected_request_does_not_store_key(self, create_use_case, seed_reservation):
        await seed_reservation(date(2024, 2, 1), date(2024, 2, 5))

        with pytest.raises(ConflictError):
            await create_use_case.execute(
                PROPERTY_ID, GUEST_ID, date(2024, 2, 2), date(2024, 2, 3), idem_key="k-3"
            )
        # La misma clave puede usarse para otra solicitud.
        reservation = await create_use_case.execute(
            PROPERTY_ID, GUEST_ID, date(2024, 2, 10), date(2024, 2, 12), idem_key="k-3"
        )

        assert reservation.check_in == date(2024, 2, 10)


@pytest.mark.concurrency
class TestConcurrentAdmission:
    async def test_at_most_one_overlapping_request_succeeds(self, clock, outbox_repo):
        reservation_repo = InterleavingReservationRepo()
        use_case = _build(
            reservation_repo, InMemoryReservationHistoryRepo(), clock, PropertyLockRegistry(), outbox_repo
        )
        requests = [
            (date(2024, 2, 1), date(2024, 2, 5)),
            (date(2024, 2, 3), date(2024, 2, 6)),
            (date(2024, 2, 4), date(2024, 2, 9)),
            (date(2024, 1, 28), date(2024, 2, 2)),
            (date(2024, 2, 1), date(2024, 2, 5)),
        ]

        results = await asyncio.gather(
            *(use_case.execute(PROPERTY_ID, GUEST_ID + i, ci, co) for i, (ci, co) in enumerate(requests)),
            return_exceptions=True,
        )

        created = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, Exception)]
        assert len(created) == 1
        assert all(isinstance(r, ConflictError) for r in rejected)
        assert len(reservation_repo.reservations) == 1

    async def test_disjoint_requests_all_succeed(self, clock, outbox_repo):
        reservation_repo = InterleavingReservationRepo()
        use_case = _build(
            reservation_repo, InMemoryReservationHistoryRepo(), clock, PropertyLockRegistry(), outbox_repo
        )

        results = await asyncio.gather(
            use_case.execute(PROPERTY_ID, GUEST_ID, date(2024, 2, 1), date(2024, 2, 3)),
            use_case.execute(PROPERTY_ID, GUEST_ID, date(2024, 2, 10), date(2024, 2, 12)),
            use_case.execute(8, GUEST_ID, date(2024, 2, 1), date(2024, 2, 3)),
        )

        assert len({r.id for r in results}) == 3

    async def test_without_admission_lock_the_race_is_observable(self, clock, outbox_repo):
        reservation_repo = InterleavingReservationRepo()
        use_case = _build(
            reservation_repo, InMemoryReservationHistoryRepo(), clock, NoLock(), outbox_repo
        )

        await asyncio.gather(
            use_case.execute(PROPERTY_ID, GUEST_ID, date(2024, 2, 1), date(2024, 2, 5)),
            use_case.execute(PROPERTY_ID, 43, date(2024, 2, 2), date(2024, 2, 6)),
            return_exceptions=True,
        )

        assert len(reservation_repo.reservations) == 2
