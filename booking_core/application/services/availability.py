"""
Evaluador de solapamiento y calculador de fechas disponibles.

Ambos trabajan sobre el mismo conjunto de reservaciones (PENDING y
CONFIRMED), pero con semánticas de borde distintas:

- is_available usa un predicado cerrado: una reservación que termina el
  día en que empieza la solicitada cuenta como solapada.
- available_dates ofrece el día de check-out (día de recambio) como libre.

La diferencia se conserva a propósito; ver DESIGN.md.
"""

import logging
from datetime import date, timedelta
from typing import Iterable, Iterator

from booking_core.application.interfaces.clock import Clock
from booking_core.application.interfaces.reservation_repo import ReservationRepo
from booking_core.application.services.existence import ExistenceChecker
from booking_core.domain.entities.reservation import Reservation
from booking_core.domain.errors import NotFoundError
from booking_core.domain.value_objects.stay_range import StayRange

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_DAYS = 90


def iter_free_dates(
    reservations: Iterable[Reservation],
    today: date,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
) -> Iterator[date]:
    """
    Recorre los huecos libres de [today, today + horizon_days).

    Args:
        reservations: Reservaciones activas ordenadas ascendentemente por check_in.
        today: Primer día del horizonte.
        horizon_days: Largo del horizonte en días.

    Yields:
        Fechas libres en orden estrictamente ascendente, sin duplicados.
    """
    horizon_end = today + timedelta(days=horizon_days)
    cursor = today
    for reservation in reservations:
        if cursor >= horizon_end:
            return
        gap_end = min(reservation.check_in, horizon_end)
        while cursor < gap_end:
            yield cursor
            cursor += timedelta(days=1)
        # el check_out queda libre (día de recambio)
        cursor = max(cursor, reservation.check_out)
    while cursor < horizon_end:
        yield cursor
        cursor += timedelta(days=1)


class AvailabilityService:
    def __init__(
        self,
        reservation_repo: ReservationRepo,
        existence_checker: ExistenceChecker,
        clock: Clock,
        horizon_days: int = DEFAULT_HORIZON_DAYS,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._existence_checker = existence_checker
        self._clock = clock
        self._horizon_days = horizon_days

    @property
    def horizon_days(self) -> int:
        return self._horizon_days

    async def is_available(self, property_id: int, check_in: date, check_out: date) -> bool:
        """
        Indica si el intervalo puede reservarse.

        La validación local del rango ocurre antes de cualquier llamada
        remota, y la existencia del listing se verifica antes de evaluar
        el solapamiento.

        Raises:
            InvalidRangeError: check_in no es anterior a check_out.
            NotFoundError: la propiedad no existe o no pudo verificarse.
        """
        stay = StayRange(check_in=check_in, check_out=check_out)
        if not await self._existence_checker.property_exists(property_id):
            raise NotFoundError(
                "property",
                property_id,
                check_in=check_in.isoformat(),
                check_out=check_out.isoformat(),
            )
        return not await self.has_conflict(property_id, stay)

    async def has_conflict(self, property_id: int, stay: StayRange) -> bool:
        """Evaluación local (sin llamadas remotas) usada dentro de la admisión."""
        overlapping = await self._reservation_repo.count_overlapping(
            property_id=property_id,
            check_in=stay.check_in,
            check_out=stay.check_out,
        )
        return overlapping > 0

    async def available_dates(self, property_id: int) -> list[date]:
        """Fechas libres de la propiedad dentro del horizonte, desde hoy."""
        today = self._clock.today()
        reservations = await self._reservation_repo.list_active_from(property_id, today)
        dates = list(iter_free_dates(reservations, today, self._horizon_days))
        logger.debug(
            "Available dates computed",
            extra={
                "property_id": property_id,
                "reservations": len(reservations),
                "free_days": len(dates),
            },
        )
        return dates
