from datetime import datetime
from typing import Any

from booking_core.domain.entities.outbox_event import OutboxEvent


class OutboxRepo:
    async def enqueue(
        self,
        topic: str,
        aggregate_id: int,
        payload: dict[str, Any],
        now: datetime,
    ) -> OutboxEvent:
        raise NotImplementedError

    async def get_by_id(self, event_id: int) -> OutboxEvent | None:
        raise NotImplementedError

    async def claim_ready(
        self,
        limit: int,
        locked_by: str,
        now: datetime,
        lock_ttl_seconds: int = 30,
    ) -> list[OutboxEvent]:
        raise NotImplementedError

    async def mark_done(self, event_id: int) -> None:
        raise NotImplementedError

    async def mark_retry(
        self,
        event_id: int,
        attempts: int,
        next_attempt_at: datetime,
        error_message: str | None,
    ) -> None:
        raise NotImplementedError

    async def mark_failed(
        self,
        event_id: int,
        attempts: int,
        error_message: str | None,
    ) -> None:
        raise NotImplementedError
