"""Aislamiento entre sesiones de request sobre una base SQL real."""

import asyncio
from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from booking_core.api.dependencies import _sql_bundle, build_use_cases
from booking_core.application.interfaces.clock import FakeClock
from booking_core.application.services.existence import ExistenceChecker
from booking_core.config import Settings
from booking_core.domain.entities.reservation import Reservation, ReservationStatus
from booking_core.domain.errors import ConflictError
from booking_core.infrastructure.admission_lock import PropertyLockRegistry
from booking_core.infrastructure.db.engine import build_sessionmaker
from booking_core.infrastructure.db.repositories.reservation_repo_sql import (
    ReservationHistoryRepoSQL,
    ReservationRepoSQL,
)
from booking_core.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager
from booking_core.infrastructure.in_memory import InMemoryExistenceOracle, InMemoryMessageBroker

pytestmark = pytest.mark.integration

NOW = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


class TestSqlStorageSettings:
    def test_sql_mode_requires_database_url(self):
        with pytest.raises(ValidationError):
            Settings(use_in_memory=False, database_url=None)

    def test_sql_mode_rejects_in_memory_sqlite(self):
        with pytest.raises(ValidationError):
            Settings(use_in_memory=False, database_url="sqlite+aiosqlite:///:memory:")

    def test_sql_mode_accepts_file_backed_sqlite(self, tmp_path):
        settings = Settings(use_in_memory=False, database_url=f"sqlite+aiosqlite:///{tmp_path / 'b.db'}")

        assert settings.use_in_memory is False


async def test_rollback_in_one_session_keeps_other_sessions_writes(file_engine):
    session_maker = build_sessionmaker(file_engine)
    async with session_maker() as session_a, session_maker() as session_b:
        tx_a = SQLAlchemyTransactionManager(session_a)
        tx_b = SQLAlchemyTransactionManager(session_b)

        async with tx_b.start():
            await ReservationRepoSQL(session_b).add(
                Reservation(
                    property_id=2,
                    guest_id=42,
                    check_in=date(2024, 2, 1),
                    check_out=date(2024, 2, 5),
                    created_at=NOW,
                )
            )
            with pytest.raises(ConflictError):
                async with tx_a.start():
                    await ReservationRepoSQL(session_a).count_overlapping(1, date(2024, 2, 1), date(2024, 2, 5))
                    raise ConflictError(1, date(2024, 2, 1), date(2024, 2, 5))

    async with session_maker() as fresh:
        assert len(await ReservationRepoSQL(fresh).list_by_property(2)) == 1


async def _create_in_own_session(session_maker, admission_lock, property_id, check_in, check_out, idem_key):
    async with session_maker() as session:
        use_cases = build_use_cases(
            _sql_bundle(session),
            Settings(),
            FakeClock(NOW),
            ExistenceChecker(
                InMemoryExistenceOracle("listing"),
                InMemoryExistenceOracle("identity"),
                timeout_seconds=1.0,
            ),
            admission_lock,
            InMemoryMessageBroker(),
        )
        return await use_cases["create_reservation"].execute(
            property_id, 42, check_in, check_out, idem_key=idem_key
        )


@pytest.mark.concurrency
async def test_concurrent_overlapping_creates_admit_one_per_property(file_engine):
    session_maker = build_sessionmaker(file_engine)
    admission_lock = PropertyLockRegistry()
    requests = [
        (property_id, date(2024, 2, 1 + offset), date(2024, 2, 6 + offset), f"req-{property_id}-{offset}")
        for property_id in (7, 8)
        for offset in range(4)
    ]

    results = await asyncio.gather(
        *(_create_in_own_session(session_maker, admission_lock, *request) for request in requests),
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, BaseException)]
    admitted = [r for r in results if not isinstance(r, BaseException)]
    assert all(isinstance(f, ConflictError) for f in failures)
    assert sorted(r.property_id for r in admitted) == [7, 8]

    async with session_maker() as fresh:
        repo = ReservationRepoSQL(fresh)
        for property_id in (7, 8):
            stored = await repo.list_by_property(property_id)
            assert len(stored) == 1
            assert stored[0].status == ReservationStatus.PENDING
            history = await ReservationHistoryRepoSQL(fresh).list_by_reservation(stored[0].id)
            assert [h.status for h in history] == [ReservationStatus.PENDING]
