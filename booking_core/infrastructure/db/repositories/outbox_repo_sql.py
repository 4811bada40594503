import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.application.interfaces.outbox_repo import OutboxRepo
from booking_core.domain.entities.outbox_event import OutboxEvent, OutboxStatus
from booking_core.infrastructure.db.tables import outbox_events, utc_naive

logger = logging.getLogger(__name__)

CLAIMABLE_STATUSES = (OutboxStatus.NEW.value, OutboxStatus.RETRY.value)


def _to_event(row) -> OutboxEvent:
    return OutboxEvent(
        id=row["id"],
        topic=row["topic"],
        aggregate_id=row["aggregate_id"],
        payload=row["payload"] or {},
        status=OutboxStatus(row["status"]),
        attempts=row["attempts"] or 0,
        next_attempt_at=row["next_attempt_at"],
        last_error=row["last_error"],
        locked_by=row["locked_by"],
        lock_expires_at=row["lock_expires_at"],
        created_at=row["created_at"],
    )


class OutboxRepoSQL(OutboxRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def enqueue(
        self,
        topic: str,
        aggregate_id: int,
        payload: dict[str, Any],
        now: datetime,
    ) -> OutboxEvent:
        now = utc_naive(now)
        stmt = insert(outbox_events).values(
            topic=topic,
            aggregate_id=aggregate_id,
            payload=payload,
            status=OutboxStatus.NEW.value,
            attempts=0,
            next_attempt_at=now,
            created_at=now,
        )
        result = await self._session.execute(stmt)
        return OutboxEvent(
            id=result.inserted_primary_key[0],
            topic=topic,
            aggregate_id=aggregate_id,
            payload=payload,
            status=OutboxStatus.NEW,
            attempts=0,
            next_attempt_at=now,
            created_at=now,
        )

    async def get_by_id(self, event_id: int) -> OutboxEvent | None:
        stmt = select(outbox_events).where(outbox_events.c.id == event_id).limit(1)
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        return _to_event(row) if row else None

    async def claim_ready(
        self,
        limit: int,
        locked_by: str,
        now: datetime,
        lock_ttl_seconds: int = 30,
    ) -> list[OutboxEvent]:
        now = utc_naive(now)
        ready = (
            outbox_events.c.status.in_(CLAIMABLE_STATUSES),
            or_(
                outbox_events.c.next_attempt_at.is_(None),
                outbox_events.c.next_attempt_at <= now,
            ),
            or_(
                outbox_events.c.lock_expires_at.is_(None),
                outbox_events.c.lock_expires_at <= now,
            ),
        )
        candidates = (
            select(outbox_events.c.id)
            .where(*ready)
            .order_by(outbox_events.c.id)
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        ids = list((await self._session.execute(candidates)).scalars().all())
        if not ids:
            return []

        # Re-check readiness so a concurrent claimer cannot take the same row.
        stmt = (
            update(outbox_events)
            .where(outbox_events.c.id.in_(ids), *ready)
            .values(
                status=OutboxStatus.IN_PROGRESS.value,
                locked_by=locked_by,
                locked_at=now,
                lock_expires_at=now + timedelta(seconds=lock_ttl_seconds),
                updated_at=now,
            )
        )
        await self._session.execute(stmt)

        claimed = (
            select(outbox_events)
            .where(
                outbox_events.c.id.in_(ids),
                outbox_events.c.locked_by == locked_by,
                outbox_events.c.status == OutboxStatus.IN_PROGRESS.value,
            )
            .order_by(outbox_events.c.id)
        )
        result = await self._session.execute(claimed)
        return [_to_event(row) for row in result.mappings().all()]

    async def mark_done(self, event_id: int) -> None:
        stmt = (
            update(outbox_events)
            .where(outbox_events.c.id == event_id)
            .values(
                status=OutboxStatus.DONE.value,
                locked_by=None,
                lock_expires_at=None,
                updated_at=utc_naive(datetime.now(timezone.utc)),
            )
        )
        await self._session.execute(stmt)

    async def mark_retry(
        self,
        event_id: int,
        attempts: int,
        next_attempt_at: datetime,
        error_message: str | None,
    ) -> None:
        stmt = (
            update(outbox_events)
            .where(outbox_events.c.id == event_id)
            .values(
                status=OutboxStatus.RETRY.value,
                attempts=attempts,
                next_attempt_at=utc_naive(next_attempt_at),
                last_error=error_message,
                locked_by=None,
                lock_expires_at=None,
                updated_at=utc_naive(datetime.now(timezone.utc)),
            )
        )
        await self._session.execute(stmt)

    async def mark_failed(
        self,
        event_id: int,
        attempts: int,
        error_message: str | None,
    ) -> None:
        stmt = (
            update(outbox_events)
            .where(outbox_events.c.id == event_id)
            .values(
                status=OutboxStatus.FAILED.value,
                attempts=attempts,
                last_error=error_message,
                locked_by=None,
                lock_expires_at=None,
                updated_at=utc_naive(datetime.now(timezone.utc)),
            )
        )
        await self._session.execute(stmt)
        logger.warning(
            "Outbox event marked as failed - requires manual intervention",
            extra={"event_id": event_id, "attempts": attempts, "error": error_message},
        )
