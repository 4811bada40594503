import hashlib
import json
import logging
from datetime import date, timedelta
from typing import Any, Awaitable, Callable, TypeVar

from booking_core.application.interfaces.admission_lock import AdmissionLock
from booking_core.application.interfaces.clock import Clock
from booking_core.application.interfaces.event_emitter import EventEmitter
from booking_core.application.interfaces.idempotency_repo import (
    IdempotencyRecord,
    IdempotencyRepo,
)
from booking_core.application.interfaces.reservation_repo import (
    ReservationHistoryRepo,
    ReservationRepo,
)
from booking_core.application.interfaces.transaction_manager import TransactionManager
from booking_core.application.services.availability import AvailabilityService
from booking_core.application.services.existence import ExistenceChecker
from booking_core.application.use_cases.facts import build_reservation_fact
from booking_core.domain.entities.outbox_event import EventTopic
from booking_core.domain.entities.reservation import Reservation
from booking_core.domain.entities.reservation_history import ReservationHistory
from booking_core.domain.errors import (
    ConflictError,
    IdempotencyConflictError,
    InvalidRangeError,
    NotFoundError,
)
from booking_core.domain.value_objects.stay_range import StayRange

logger = logging.getLogger(__name__)

T = TypeVar("T")
RetryPolicy = Callable[[Callable[[], Awaitable[T]]], Awaitable[T]]

IDEMPOTENCY_SCOPE = "RESERVATION_CREATE"


async def run_once(func: Callable[[], Awaitable[T]]) -> T:
    return await func()


def _hash_request(payload: dict[str, Any]) -> str:
    normalized = json.dumps(
        payload, sort_keys=True, default=str, separators=(",", ":")
    )
    return hashlib.sha256(normalized.encode()).hexdigest()


class CreateReservationUseCase:
    """
    Admite una reservación nueva.

    Orden de validación: rango local, existencia de la propiedad,
    existencia del huésped y, bajo el lock de admisión de la propiedad,
    disponibilidad + inserción + historial en una sola transacción. La
    publicación del hecho ocurre después del commit y nunca falla la
    creación.
    """

    def __init__(
        self,
        reservation_repo: ReservationRepo,
        history_repo: ReservationHistoryRepo,
        availability: AvailabilityService,
        existence_checker: ExistenceChecker,
        admission_lock: AdmissionLock,
        transaction_manager: TransactionManager,
        event_emitter: EventEmitter,
        clock: Clock,
        idempotency_repo: IdempotencyRepo | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._history_repo = history_repo
        self._availability = availability
        self._existence_checker = existence_checker
        self._admission_lock = admission_lock
        self._transaction_manager = transaction_manager
        self._event_emitter = event_emitter
        self._clock = clock
        self._idempotency_repo = idempotency_repo
        self._retry_policy = retry_policy or run_once

    async def execute(
        self,
        property_id: int,
        guest_id: int,
        check_in: date,
        check_out: date,
        idem_key: str | None = None,
    ) -> Reservation:
        stay = self._validate_range(property_id, check_in, check_out)

        request_hash = _hash_request(
            {
                "property_id": property_id,
                "guest_id": guest_id,
                "check_in": check_in,
                "check_out": check_out,
            }
        )
        replay = await self._replay(idem_key, request_hash)
        if replay is not None:
            return replay

        if not await self._existence_checker.property_exists(property_id):
            raise NotFoundError(
                "property",
                property_id,
                check_in=check_in.isoformat(),
                check_out=check_out.isoformat(),
            )
        if not await self._existence_checker.identity_exists(guest_id):
            raise NotFoundError("guest", guest_id, property_id=property_id)

        async def admit() -> tuple[Reservation, bool]:
            async with self._transaction_manager.start():
                existing = await self._replay(idem_key, request_hash)
                if existing is not None:
                    return existing, False
                return await self._admit(property_id, guest_id, stay, idem_key, request_hash), True

        async with self._admission_lock.hold(property_id):
            reservation, created = await self._retry_policy(admit)

        if created:
            logger.info(
                "Reservation created",
                extra={
                    "reservation_id": reservation.id,
                    "property_id": property_id,
                    "guest_id": guest_id,
                    "check_in": check_in.isoformat(),
                    "check_out": check_out.isoformat(),
                },
            )
            await self._event_emitter.emit(
                EventTopic.RESERVATION_CREATED.value,
                build_reservation_fact(reservation),
            )
        return reservation

    def _validate_range(self, property_id: int, check_in: date, check_out: date) -> StayRange:
        if check_in >= check_out:
            raise InvalidRangeError(check_in, check_out, property_id=property_id)
        today = self._clock.today()
        if check_in < today:
            raise InvalidRangeError(
                check_in,
                check_out,
                reason="no se puede reservar en el pasado",
                property_id=property_id,
            )
        window_end = today + timedelta(days=self._availability.horizon_days)
        if check_out > window_end:
            raise InvalidRangeError(
                check_in,
                check_out,
                reason=f"no se puede reservar más allá de {window_end.isoformat()}",
                property_id=property_id,
            )
        return StayRange(check_in=check_in, check_out=check_out)

    async def _admit(
        self,
        property_id: int,
        guest_id: int,
        stay: StayRange,
        idem_key: str | None,
        request_hash: str,
    ) -> Reservation:
        if await self._availability.has_conflict(property_id, stay):
            raise ConflictError(property_id, stay.check_in, stay.check_out)

        now = self._clock.now()
        reservation = await self._reservation_repo.add(
            Reservation.new_pending(
                property_id=property_id,
                guest_id=guest_id,
                stay=stay,
                created_at=now,
            )
        )
        await self._history_repo.append(
            ReservationHistory(
                reservation_id=reservation.id,
                status=reservation.status,
                changed_at=now,
            )
        )
        if idem_key and self._idempotency_repo is not None:
            await self._idempotency_repo.save(
                IdempotencyRecord(
                    scope=IDEMPOTENCY_SCOPE,
                    idem_key=idem_key,
                    request_hash=request_hash,
                    response_json=build_reservation_fact(reservation),
                    http_status=201,
                    reference_reservation_id=reservation.id,
                )
            )
        return reservation

    async def _replay(self, idem_key: str | None, request_hash: str) -> Reservation | None:
        if not idem_key or self._idempotency_repo is None:
            return None
        record = await self._idempotency_repo.get(scope=IDEMPOTENCY_SCOPE, idem_key=idem_key)
        if record is None:
            return None
        if record.request_hash != request_hash:
            raise IdempotencyConflictError(idem_key=idem_key, scope=IDEMPOTENCY_SCOPE)
        if record.reference_reservation_id is None:
            return None
        return await self._reservation_repo.get(record.reference_reservation_id)
