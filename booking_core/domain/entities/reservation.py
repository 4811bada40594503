"""Entidad Reservation - Agregado raíz del dominio."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from booking_core.domain.errors import InvalidStatusTransitionError
from booking_core.domain.value_objects.stay_range import StayRange


class ReservationStatus(str, Enum):
    """Estados posibles de una reservación."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


# Estados que bloquean el calendario de la propiedad.
ACTIVE_STATUSES: frozenset[ReservationStatus] = frozenset(
    {ReservationStatus.PENDING, ReservationStatus.CONFIRMED}
)

ALLOWED_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.CONFIRMED: frozenset({ReservationStatus.CANCELLED}),
    ReservationStatus.CANCELLED: frozenset(),
}


@dataclass
class Reservation:
    """
    Entidad principal del dominio - Agregado Raíz.

    Representa el reclamo de un huésped sobre una propiedad para el
    intervalo [check_in, check_out). Nunca se borra: la cancelación es
    un estado.
    """

    # Referencias externas (propiedad del servicio de listings / identidad)
    property_id: int
    guest_id: int

    # Fechas
    check_in: date
    check_out: date

    # Estado
    status: ReservationStatus = ReservationStatus.PENDING

    # Identificador subrogado (asignado al persistir)
    id: int | None = None

    # Timestamps
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # === Propiedades calculadas ===

    @property
    def stay_range(self) -> StayRange:
        """Retorna el intervalo como Value Object."""
        return StayRange(check_in=self.check_in, check_out=self.check_out)

    @property
    def is_active(self) -> bool:
        """Verifica si la reservación ocupa el calendario (PENDING o CONFIRMED)."""
        return self.status in ACTIVE_STATUSES

    # === Métodos de negocio ===

    def can_transition_to(self, new_status: ReservationStatus) -> bool:
        """Verifica si la tabla de transiciones permite el cambio."""
        return new_status in ALLOWED_TRANSITIONS[self.status]

    def transition_to(self, new_status: ReservationStatus, changed_at: datetime) -> None:
        """
        Aplica un cambio de estado validado contra ALLOWED_TRANSITIONS.

        Raises:
            InvalidStatusTransitionError: si la transición no está permitida.
        """
        if not self.can_transition_to(new_status):
            raise InvalidStatusTransitionError(
                reservation_id=self.id or 0,
                current_status=self.status.value,
                requested_status=new_status.value,
            )
        self.status = new_status
        self.updated_at = changed_at

    @classmethod
    def new_pending(
        cls,
        property_id: int,
        guest_id: int,
        stay: StayRange,
        created_at: datetime,
    ) -> "Reservation":
        """Factory: toda reservación nace en PENDING."""
        return cls(
            property_id=property_id,
            guest_id=guest_id,
            check_in=stay.check_in,
            check_out=stay.check_out,
            status=ReservationStatus.PENDING,
            created_at=created_at,
        )
