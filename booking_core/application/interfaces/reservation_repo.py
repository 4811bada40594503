from datetime import date

from booking_core.domain.entities.reservation import Reservation
from booking_core.domain.entities.reservation_history import ReservationHistory


class ReservationRepo:
    async def add(self, reservation: Reservation) -> Reservation:
        """Persiste una reservación nueva y le asigna id."""
        raise NotImplementedError

    async def get(self, reservation_id: int) -> Reservation | None:
        raise NotImplementedError

    async def update(self, reservation: Reservation) -> None:
        raise NotImplementedError

    async def count_overlapping(
        self,
        property_id: int,
        check_in: date,
        check_out: date,
    ) -> int:
        """
        Cuenta reservaciones PENDING/CONFIRMED de la propiedad con
        stored.check_out >= check_in AND stored.check_in <= check_out.
        """
        raise NotImplementedError

    async def list_active_from(self, property_id: int, from_date: date) -> list[Reservation]:
        """Reservaciones no canceladas con check_out >= from_date, ordenadas por check_in."""
        raise NotImplementedError

    async def list_by_property(
        self,
        property_id: int,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Reservation]:
        raise NotImplementedError

    async def list_by_guest(
        self,
        guest_id: int,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Reservation]:
        raise NotImplementedError

    async def exists_for_guest(self, property_id: int, guest_id: int) -> bool:
        """True si existe cualquier reservación (cualquier estado) para el par."""
        raise NotImplementedError


class ReservationHistoryRepo:
    async def append(self, entry: ReservationHistory) -> ReservationHistory:
        raise NotImplementedError

    async def list_by_reservation(self, reservation_id: int) -> list[ReservationHistory]:
        """Entradas ordenadas por changed_at (y por id a igual instante)."""
        raise NotImplementedError
