import logging

from booking_core.application.interfaces.clock import Clock
from booking_core.application.interfaces.event_emitter import EventEmitter
from booking_core.application.interfaces.reservation_repo import (
    ReservationHistoryRepo,
    ReservationRepo,
)
from booking_core.application.interfaces.transaction_manager import TransactionManager
from booking_core.application.use_cases.facts import build_reservation_fact
from booking_core.domain.entities.outbox_event import EventTopic
from booking_core.domain.entities.reservation import Reservation, ReservationStatus
from booking_core.domain.entities.reservation_history import ReservationHistory
from booking_core.domain.errors import NotFoundError

logger = logging.getLogger(__name__)


class UpdateReservationStatusUseCase:
    def __init__(
        self,
        reservation_repo: ReservationRepo,
        history_repo: ReservationHistoryRepo,
        transaction_manager: TransactionManager,
        event_emitter: EventEmitter,
        clock: Clock,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._history_repo = history_repo
        self._transaction_manager = transaction_manager
        self._event_emitter = event_emitter
        self._clock = clock

    async def execute(self, reservation_id: int, new_status: ReservationStatus) -> Reservation:
        """
        Aplica un cambio de estado y agrega la entrada de historial.

        Escribir el estado que la reservación ya tiene no hace nada (no se
        agrega historial). Cualquier otra transición se valida contra la
        tabla de transiciones permitidas.

        Raises:
            NotFoundError: la reservación no existe.
            InvalidStatusTransitionError: la transición no está permitida.
        """
        async with self._transaction_manager.start():
            reservation = await self._reservation_repo.get(reservation_id)
            if reservation is None:
                raise NotFoundError("reservation", reservation_id, requested_status=new_status.value)

            if reservation.status == new_status:
                return reservation

            previous_status = reservation.status
            now = self._clock.now()
            reservation.transition_to(new_status, changed_at=now)
            await self._reservation_repo.update(reservation)
            await self._history_repo.append(
                ReservationHistory(
                    reservation_id=reservation.id,
                    status=new_status,
                    changed_at=now,
                )
            )

        logger.info(
            "Reservation status updated",
            extra={
                "reservation_id": reservation_id,
                "property_id": reservation.property_id,
                "from_status": previous_status.value,
                "to_status": new_status.value,
            },
        )
        if new_status == ReservationStatus.CONFIRMED:
            await self._event_emitter.emit(
                EventTopic.RESERVATION_CONFIRMED.value,
                build_reservation_fact(reservation),
            )
        return reservation
