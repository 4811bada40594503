"""Entidad ReservationHistory - registro append-only de cambios de estado."""

from dataclasses import dataclass
from datetime import datetime

from booking_core.domain.entities.reservation import ReservationStatus


@dataclass(frozen=True)
class ReservationHistory:
    """
    Entrada inmutable del historial de una reservación.

    Se escribe una al crear (PENDING) y una por cada cambio de estado.
    """

    reservation_id: int
    status: ReservationStatus
    changed_at: datetime
    id: int | None = None
