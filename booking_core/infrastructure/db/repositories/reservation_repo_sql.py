from datetime import date

from sqlalchemy import func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.application.interfaces.reservation_repo import (
    ReservationHistoryRepo,
    ReservationRepo,
)
from booking_core.domain.entities.reservation import (
    ACTIVE_STATUSES,
    Reservation,
    ReservationStatus,
)
from booking_core.domain.entities.reservation_history import ReservationHistory
from booking_core.infrastructure.db.tables import reservation_history, reservations, utc_naive

ACTIVE_STATUS_VALUES = tuple(s.value for s in ACTIVE_STATUSES)


def _to_reservation(row) -> Reservation:
    return Reservation(
        id=row["id"],
        property_id=row["property_id"],
        guest_id=row["guest_id"],
        check_in=row["check_in"],
        check_out=row["check_out"],
        status=ReservationStatus(row["status"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class ReservationRepoSQL(ReservationRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, reservation: Reservation) -> Reservation:
        stmt = insert(reservations).values(
            property_id=reservation.property_id,
            guest_id=reservation.guest_id,
            check_in=reservation.check_in,
            check_out=reservation.check_out,
            status=reservation.status.value,
            created_at=utc_naive(reservation.created_at),
            updated_at=utc_naive(reservation.updated_at),
        )
        result = await self._session.execute(stmt)
        reservation_id = result.inserted_primary_key[0]
        return Reservation(
            id=reservation_id,
            property_id=reservation.property_id,
            guest_id=reservation.guest_id,
            check_in=reservation.check_in,
            check_out=reservation.check_out,
            status=reservation.status,
            created_at=reservation.created_at,
            updated_at=reservation.updated_at,
        )

    async def get(self, reservation_id: int) -> Reservation | None:
        stmt = select(reservations).where(reservations.c.id == reservation_id).limit(1)
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        return _to_reservation(row) if row else None

    async def update(self, reservation: Reservation) -> None:
        stmt = (
            update(reservations)
            .where(reservations.c.id == reservation.id)
            .values(status=reservation.status.value, updated_at=utc_naive(reservation.updated_at))
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise ValueError("Reservation not found")

    async def count_overlapping(
        self,
        property_id: int,
        check_in: date,
        check_out: date,
    ) -> int:
        stmt = select(func.count()).select_from(reservations).where(
            reservations.c.property_id == property_id,
            reservations.c.status.in_(ACTIVE_STATUS_VALUES),
            reservations.c.check_out >= check_in,
            reservations.c.check_in <= check_out,
        )
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def list_active_from(self, property_id: int, from_date: date) -> list[Reservation]:
        stmt = (
            select(reservations)
            .where(
                reservations.c.property_id == property_id,
                reservations.c.status.in_(ACTIVE_STATUS_VALUES),
                reservations.c.check_out >= from_date,
            )
            .order_by(reservations.c.check_in, reservations.c.id)
        )
        result = await self._session.execute(stmt)
        return [_to_reservation(row) for row in result.mappings().all()]

    async def list_by_property(
        self,
        property_id: int,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Reservation]:
        stmt = (
            select(reservations)
            .where(reservations.c.property_id == property_id)
            .order_by(reservations.c.check_in, reservations.c.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self._session.execute(stmt)
        return [_to_reservation(row) for row in result.mappings().all()]

    async def list_by_guest(
        self,
        guest_id: int,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Reservation]:
        stmt = (
            select(reservations)
            .where(reservations.c.guest_id == guest_id)
            .order_by(reservations.c.check_in, reservations.c.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self._session.execute(stmt)
        return [_to_reservation(row) for row in result.mappings().all()]

    async def exists_for_guest(self, property_id: int, guest_id: int) -> bool:
        stmt = (
            select(reservations.c.id)
            .where(
                reservations.c.property_id == property_id,
                reservations.c.guest_id == guest_id,
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar() is not None


class ReservationHistoryRepoSQL(ReservationHistoryRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append(self, entry: ReservationHistory) -> ReservationHistory:
        stmt = insert(reservation_history).values(
            reservation_id=entry.reservation_id,
            status=entry.status.value,
            changed_at=utc_naive(entry.changed_at),
        )
        result = await self._session.execute(stmt)
        return ReservationHistory(
            id=result.inserted_primary_key[0],
            reservation_id=entry.reservation_id,
            status=entry.status,
            changed_at=entry.changed_at,
        )

    async def list_by_reservation(self, reservation_id: int) -> list[ReservationHistory]:
        stmt = (
            select(reservation_history)
            .where(reservation_history.c.reservation_id == reservation_id)
            .order_by(reservation_history.c.changed_at, reservation_history.c.id)
        )
        result = await self._session.execute(stmt)
        return [
            ReservationHistory(
                id=row["id"],
                reservation_id=row["reservation_id"],
                status=ReservationStatus(row["status"]),
                changed_at=row["changed_at"],
            )
            for row in result.mappings().all()
        ]
