import copy
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any

from booking_core.application.interfaces.outbox_repo import OutboxRepo
from booking_core.domain.entities.outbox_event import OutboxEvent, OutboxStatus


class InMemoryOutboxRepo(OutboxRepo):
    def __init__(self) -> None:
        self._events: dict[int, OutboxEvent] = {}
        self._next_id = 1

    def snapshot(self) -> tuple:
        return copy.deepcopy(self._events), self._next_id

    def restore(self, state: tuple) -> None:
        self._events, self._next_id = state

    @property
    def events(self) -> list[OutboxEvent]:
        return [replace(e) for e in self._events.values()]

    async def enqueue(
        self,
        topic: str,
        aggregate_id: int,
        payload: dict[str, Any],
        now: datetime,
    ) -> OutboxEvent:
        event = OutboxEvent(
            id=self._next_id,
            topic=topic,
            aggregate_id=aggregate_id,
            payload=dict(payload),
            status=OutboxStatus.NEW,
            attempts=0,
            next_attempt_at=now,
            created_at=now,
        )
        self._events[event.id] = event
        self._next_id += 1
        return replace(event)

    async def get_by_id(self, event_id: int) -> OutboxEvent | None:
        event = self._events.get(event_id)
        return replace(event) if event else None

    async def claim_ready(
        self,
        limit: int,
        locked_by: str,
        now: datetime,
        lock_ttl_seconds: int = 30,
    ) -> list[OutboxEvent]:
        claimed: list[OutboxEvent] = []
        for event in sorted(self._events.values(), key=lambda e: e.id):
            if len(claimed) >= limit:
                break
            if not event.is_ready(now):
                continue
            event.locked_by = locked_by
            event.lock_expires_at = now + timedelta(seconds=lock_ttl_seconds)
            event.status = OutboxStatus.IN_PROGRESS
            claimed.append(replace(event))
        return claimed

    async def mark_done(self, event_id: int) -> None:
        event = self._events.get(event_id)
        if not event:
            return
        event.status = OutboxStatus.DONE
        event.locked_by = None
        event.lock_expires_at = None

    async def mark_retry(
        self,
        event_id: int,
        attempts: int,
        next_attempt_at: datetime,
        error_message: str | None,
    ) -> None:
        event = self._events.get(event_id)
        if not event:
            return
        event.status = OutboxStatus.RETRY
        event.attempts = attempts
        event.next_attempt_at = next_attempt_at
        event.last_error = error_message
        event.locked_by = None
        event.lock_expires_at = None

    async def mark_failed(
        self,
        event_id: int,
        attempts: int,
        error_message: str | None,
    ) -> None:
        event = self._events.get(event_id)
        if not event:
            return
        event.status = OutboxStatus.FAILED
        event.attempts = attempts
        event.last_error = error_message
        event.locked_by = None
        event.lock_expires_at = None
