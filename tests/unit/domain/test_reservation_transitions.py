from datetime import date, datetime, timezone

import pytest

from booking_core.domain.entities.reservation import (
    ALLOWED_TRANSITIONS,
    Reservation,
    ReservationStatus,
)
from booking_core.domain.errors import InvalidStatusTransitionError, NotFoundError
from booking_core.domain.value_objects.stay_range import StayRange

NOW = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

PENDING = ReservationStatus.PENDING
CONFIRMED = ReservationStatus.CONFIRMED
CANCELLED = ReservationStatus.CANCELLED


def _reservation(status: ReservationStatus) -> Reservation:
    return Reservation(
        id=1,
        property_id=7,
        guest_id=42,
        check_in=date(2024, 2, 1),
        check_out=date(2024, 2, 5),
        status=status,
        created_at=NOW,
    )


class TestNewPending:
    def test_new_reservation_starts_pending(self):
        stay = StayRange(date(2024, 2, 1), date(2024, 2, 5))
        reservation = Reservation.new_pending(property_id=7, guest_id=42, stay=stay, created_at=NOW)

        assert reservation.status == PENDING
        assert reservation.created_at == NOW
        assert reservation.updated_at is None
        assert reservation.id is None
        assert reservation.is_active


class TestTransitionTable:
    @pytest.mark.parametrize(
        "current, target",
        [(PENDING, CONFIRMED), (PENDING, CANCELLED), (CONFIRMED, CANCELLED)],
    )
    def test_allowed_transitions(self, current, target):
        reservation = _reservation(current)
        later = datetime(2024, 1, 2, tzinfo=timezone.utc)

        reservation.transition_to(target, changed_at=later)

        assert reservation.status == target
        assert reservation.updated_at == later

    @pytest.mark.parametrize(
        "current, target",
        [(CONFIRMED, PENDING), (CANCELLED, PENDING), (CANCELLED, CONFIRMED)],
    )
    def test_rejected_transitions(self, current, target):
        reservation = _reservation(current)

        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            reservation.transition_to(target, changed_at=NOW)

        assert reservation.status == current
        assert exc_info.value.context == {
            "reservation_id": 1,
            "current_status": current.value,
            "requested_status": target.value,
        }

    def test_cancelled_is_terminal(self):
        assert ALLOWED_TRANSITIONS[CANCELLED] == frozenset()
        assert not _reservation(CANCELLED).is_active

    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(ReservationStatus)


class TestNotFoundKinds:
    def test_unknown_kind_is_rejected(self):
        with pytest.raises(ValueError):
            NotFoundError("listing", 1)

    def test_context_carries_kind_and_extra_fields(self):
        error = NotFoundError("property", 7, check_in="2024-02-01")

        assert error.code == "NOT_FOUND"
        assert error.context == {"kind": "property", "id": 7, "check_in": "2024-02-01"}
