from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol


class AdmissionLock(Protocol):
    """Serializa la admisión de reservaciones por clave (property_id)."""

    @asynccontextmanager
    async def hold(self, key: int) -> AsyncIterator[None]:
        yield
