from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any, Protocol

from booking_core.application.interfaces.transaction_manager import TransactionManager


class Snapshottable(Protocol):
    def snapshot(self) -> Any: ...

    def restore(self, state: Any) -> None: ...


class InMemoryTransactionManager(TransactionManager):
    """
    Restores every participating repo if the unit of work raises.

    In-memory repo calls never suspend the event loop, so two units of work
    cannot interleave between snapshot and restore.
    """

    def __init__(self, *participants: Snapshottable) -> None:
        self._participants = participants
        self._depth: ContextVar[int] = ContextVar(f"in_memory_tx_depth_{id(self)}", default=0)

    @asynccontextmanager
    async def start(self) -> AsyncIterator[None]:
        depth = self._depth.get()
        if depth:
            yield
            return
        states = [p.snapshot() for p in self._participants]
        token = self._depth.set(depth + 1)
        try:
            yield
        except BaseException:
            for participant, state in zip(self._participants, states):
                participant.restore(state)
            raise
        finally:
            self._depth.reset(token)
