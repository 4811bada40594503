import copy
from dataclasses import replace
from datetime import date

from booking_core.application.interfaces.reservation_repo import (
    ReservationHistoryRepo,
    ReservationRepo,
)
from booking_core.domain.entities.reservation import ACTIVE_STATUSES, Reservation
from booking_core.domain.entities.reservation_history import ReservationHistory
from booking_core.domain.value_objects.stay_range import StayRange


def _page(items: list, limit: int | None, offset: int) -> list:
    if limit is None:
        return items[offset:]
    return items[offset : offset + limit]


class InMemoryReservationRepo(ReservationRepo):
    def __init__(self) -> None:
        self.reservations: dict[int, Reservation] = {}
        self._next_id = 1

    def snapshot(self) -> tuple:
        return copy.deepcopy(self.reservations), self._next_id

    def restore(self, state: tuple) -> None:
        self.reservations, self._next_id = state

    async def add(self, reservation: Reservation) -> Reservation:
        stored = replace(reservation, id=self._next_id)
        self.reservations[stored.id] = stored
        self._next_id += 1
        return replace(stored)

    async def get(self, reservation_id: int) -> Reservation | None:
        stored = self.reservations.get(reservation_id)
        return replace(stored) if stored else None

    async def update(self, reservation: Reservation) -> None:
        if reservation.id not in self.reservations:
            raise ValueError("Reservation not found")
        self.reservations[reservation.id] = replace(reservation)

    async def count_overlapping(
        self,
        property_id: int,
        check_in: date,
        check_out: date,
    ) -> int:
        requested = StayRange(check_in=check_in, check_out=check_out)
        return sum(
            1
            for r in self.reservations.values()
            if r.property_id == property_id
            and r.status in ACTIVE_STATUSES
            and requested.overlaps_with(r.stay_range)
        )

    async def list_active_from(self, property_id: int, from_date: date) -> list[Reservation]:
        matches = [
            replace(r)
            for r in self.reservations.values()
            if r.property_id == property_id
            and r.status in ACTIVE_STATUSES
            and r.check_out >= from_date
        ]
        return sorted(matches, key=lambda r: (r.check_in, r.id))

    async def list_by_property(
        self,
        property_id: int,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Reservation]:
        matches = [replace(r) for r in self.reservations.values() if r.property_id == property_id]
        return _page(sorted(matches, key=lambda r: (r.check_in, r.id)), limit, offset)

    async def list_by_guest(
        self,
        guest_id: int,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Reservation]:
        matches = [replace(r) for r in self.reservations.values() if r.guest_id == guest_id]
        return _page(sorted(matches, key=lambda r: (r.check_in, r.id)), limit, offset)

    async def exists_for_guest(self, property_id: int, guest_id: int) -> bool:
        return any(
            r.property_id == property_id and r.guest_id == guest_id
            for r in self.reservations.values()
        )


class InMemoryReservationHistoryRepo(ReservationHistoryRepo):
    def __init__(self) -> None:
        self.entries: list[ReservationHistory] = []
        self._next_id = 1

    def snapshot(self) -> tuple:
        return list(self.entries), self._next_id

    def restore(self, state: tuple) -> None:
        self.entries, self._next_id = state

    async def append(self, entry: ReservationHistory) -> ReservationHistory:
        stored = replace(entry, id=self._next_id)
        self.entries.append(stored)
        self._next_id += 1
        return stored

    async def list_by_reservation(self, reservation_id: int) -> list[ReservationHistory]:
        matches = [e for e in self.entries if e.reservation_id == reservation_id]
        return sorted(matches, key=lambda e: (e.changed_at, e.id))
