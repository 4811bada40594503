from booking_core.application.interfaces.reservation_repo import (
    ReservationHistoryRepo,
    ReservationRepo,
)
from booking_core.domain.entities.reservation import Reservation
from booking_core.domain.entities.reservation_history import ReservationHistory
from booking_core.domain.errors import NotFoundError


class ReservationQueries:
    """Lecturas puras del ciclo de vida; no tienen efectos secundarios."""

    def __init__(
        self,
        reservation_repo: ReservationRepo,
        history_repo: ReservationHistoryRepo,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._history_repo = history_repo

    async def get_by_id(self, reservation_id: int) -> Reservation:
        reservation = await self._reservation_repo.get(reservation_id)
        if reservation is None:
            raise NotFoundError("reservation", reservation_id)
        return reservation

    async def list_by_property(
        self,
        property_id: int,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Reservation]:
        return await self._reservation_repo.list_by_property(property_id, limit=limit, offset=offset)

    async def list_by_guest(
        self,
        guest_id: int,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Reservation]:
        return await self._reservation_repo.list_by_guest(guest_id, limit=limit, offset=offset)

    async def list_history_by_reservation(self, reservation_id: int) -> list[ReservationHistory]:
        return await self._history_repo.list_by_reservation(reservation_id)

    async def was_reserved_by(self, property_id: int, guest_id: int) -> bool:
        """
        Compuerta usada por el servicio de reseñas.

        No filtra por estado: una estadía CANCELLED también cuenta.
        """
        return await self._reservation_repo.exists_for_guest(property_id, guest_id)
