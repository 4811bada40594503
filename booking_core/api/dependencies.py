from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.api.deps import AsyncSessionLocal
from booking_core.application.interfaces.clock import Clock, SystemClock
from booking_core.application.interfaces.event_emitter import MessageBroker
from booking_core.application.interfaces.existence_oracle import ExistenceOracle
from booking_core.application.services.availability import AvailabilityService
from booking_core.application.services.existence import ExistenceChecker
from booking_core.application.use_cases.create_reservation import CreateReservationUseCase
from booking_core.application.use_cases.reservation_queries import ReservationQueries
from booking_core.application.use_cases.update_reservation_status import (
    UpdateReservationStatusUseCase,
)
from booking_core.config import Settings, get_settings
from booking_core.infrastructure.admission_lock import PropertyLockRegistry
from booking_core.infrastructure.db.repositories.idempotency_repo_sql import IdempotencyRepoSQL
from booking_core.infrastructure.db.repositories.outbox_repo_sql import OutboxRepoSQL
from booking_core.infrastructure.db.repositories.reservation_repo_sql import (
    ReservationHistoryRepoSQL,
    ReservationRepoSQL,
)
from booking_core.infrastructure.db.retry import retry_on_transient_error
from booking_core.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager
from booking_core.infrastructure.gateways.existence_gateway_http import (
    identity_gateway,
    listing_gateway,
)
from booking_core.infrastructure.gateways.notification_broker_http import NotificationBrokerHTTP
from booking_core.infrastructure.in_memory.broker import InMemoryMessageBroker
from booking_core.infrastructure.in_memory.existence_oracle import InMemoryExistenceOracle
from booking_core.infrastructure.in_memory.idempotency_repo import InMemoryIdempotencyRepo
from booking_core.infrastructure.in_memory.outbox_repo import InMemoryOutboxRepo
from booking_core.infrastructure.in_memory.reservation_repo import (
    InMemoryReservationHistoryRepo,
    InMemoryReservationRepo,
)
from booking_core.infrastructure.in_memory.transaction_manager import InMemoryTransactionManager
from booking_core.infrastructure.messaging.event_emitter import OutboxEventEmitter
from booking_core.infrastructure.messaging.outbox_worker import OutboxWorker


async def get_session(settings: Settings = Depends(get_settings)) -> AsyncSession | None:
    if settings.use_in_memory:
        yield None
        return
    async with AsyncSessionLocal() as session:
        yield session


@lru_cache(maxsize=1)
def get_clock() -> Clock:
    return SystemClock()


@lru_cache(maxsize=1)
def get_admission_lock() -> PropertyLockRegistry:
    return PropertyLockRegistry()


def _oracle(name: str, base_url: str | None, timeout_seconds: float) -> ExistenceOracle:
    if not base_url:
        return InMemoryExistenceOracle(service_name=name)
    if name == "listing":
        return listing_gateway(base_url, timeout_seconds)
    return identity_gateway(base_url, timeout_seconds)


@lru_cache(maxsize=1)
def get_existence_checker() -> ExistenceChecker:
    settings = get_settings()
    timeout = settings.existence_timeout_seconds
    return ExistenceChecker(
        listing_oracle=_oracle("listing", settings.listing_service_url, timeout),
        identity_oracle=_oracle("identity", settings.identity_service_url, timeout),
        timeout_seconds=timeout,
    )


@lru_cache(maxsize=1)
def get_message_broker() -> MessageBroker:
    settings = get_settings()
    if settings.notification_url:
        return NotificationBrokerHTTP(
            url=settings.notification_url,
            timeout_seconds=settings.notification_timeout_seconds,
        )
    return InMemoryMessageBroker()


@lru_cache(maxsize=1)
def _in_memory_bundle():
    reservation_repo = InMemoryReservationRepo()
    history_repo = InMemoryReservationHistoryRepo()
    idempotency_repo = InMemoryIdempotencyRepo()
    outbox_repo = InMemoryOutboxRepo()
    tx_manager = InMemoryTransactionManager(
        reservation_repo, history_repo, idempotency_repo, outbox_repo
    )
    return {
        "reservation_repo": reservation_repo,
        "history_repo": history_repo,
        "idempotency_repo": idempotency_repo,
        "outbox_repo": outbox_repo,
        "tx_manager": tx_manager,
    }


def _sql_bundle(session: AsyncSession) -> dict:
    return {
        "reservation_repo": ReservationRepoSQL(session),
        "history_repo": ReservationHistoryRepoSQL(session),
        "idempotency_repo": IdempotencyRepoSQL(session),
        "outbox_repo": OutboxRepoSQL(session),
        "tx_manager": SQLAlchemyTransactionManager(session),
    }


def build_outbox_worker(
    bundle: dict,
    broker: MessageBroker,
    clock: Clock,
    settings: Settings,
    worker_id: str | None = None,
) -> OutboxWorker:
    return OutboxWorker(
        outbox_repo=bundle["outbox_repo"],
        broker=broker,
        clock=clock,
        transaction_manager=bundle["tx_manager"],
        worker_id=worker_id,
        poll_interval_seconds=settings.outbox_poll_interval_seconds,
        batch_size=settings.outbox_batch_size,
        max_attempts=settings.outbox_max_attempts,
    )


def build_use_cases(
    bundle: dict,
    settings: Settings,
    clock: Clock,
    existence_checker: ExistenceChecker,
    admission_lock: PropertyLockRegistry,
    broker: MessageBroker,
) -> dict:
    availability = AvailabilityService(
        reservation_repo=bundle["reservation_repo"],
        existence_checker=existence_checker,
        clock=clock,
        horizon_days=settings.availability_horizon_days,
    )
    event_emitter = OutboxEventEmitter(
        outbox_repo=bundle["outbox_repo"],
        transaction_manager=bundle["tx_manager"],
        clock=clock,
    )
    return {
        "availability": availability,
        "create_reservation": CreateReservationUseCase(
            reservation_repo=bundle["reservation_repo"],
            history_repo=bundle["history_repo"],
            availability=availability,
            existence_checker=existence_checker,
            admission_lock=admission_lock,
            transaction_manager=bundle["tx_manager"],
            event_emitter=event_emitter,
            clock=clock,
            idempotency_repo=bundle["idempotency_repo"],
            retry_policy=retry_on_transient_error,
        ),
        "update_status": UpdateReservationStatusUseCase(
            reservation_repo=bundle["reservation_repo"],
            history_repo=bundle["history_repo"],
            transaction_manager=bundle["tx_manager"],
            event_emitter=event_emitter,
            clock=clock,
        ),
        "queries": ReservationQueries(
            reservation_repo=bundle["reservation_repo"],
            history_repo=bundle["history_repo"],
        ),
        "outbox_worker": build_outbox_worker(
            bundle, broker, clock, settings, worker_id="api-drain"
        ),
    }


def get_use_cases(
    settings: Settings = Depends(get_settings),
    session: AsyncSession | None = Depends(get_session),
    clock: Clock = Depends(get_clock),
    existence_checker: ExistenceChecker = Depends(get_existence_checker),
    admission_lock: PropertyLockRegistry = Depends(get_admission_lock),
    broker: MessageBroker = Depends(get_message_broker),
):
    if settings.use_in_memory:
        bundle = _in_memory_bundle()
    else:
        if not session:
            raise RuntimeError("DB session not available")
        bundle = _sql_bundle(session)
    return build_use_cases(bundle, settings, clock, existence_checker, admission_lock, broker)
