"""Verificador de existencia con política fail-closed."""

import asyncio
import logging

from booking_core.application.interfaces.existence_oracle import ExistenceOracle
from booking_core.domain.errors import UpstreamUnavailableError

logger = logging.getLogger(__name__)


class ExistenceChecker:
    """
    Consulta a los servicios de listings e identidad.

    Cualquier fallo remoto (timeout, error HTTP, circuito abierto) se
    trata como "no se pudo confirmar la existencia" y retorna False: es
    preferible rechazar una reserva legítima que crear una contra una
    propiedad o huésped que no se pudo verificar.
    """

    def __init__(
        self,
        listing_oracle: ExistenceOracle,
        identity_oracle: ExistenceOracle,
        timeout_seconds: float = 2.0,
    ) -> None:
        self._listing = listing_oracle
        self._identity = identity_oracle
        self._timeout = timeout_seconds

    async def property_exists(self, property_id: int) -> bool:
        return await self._check(self._listing, property_id)

    async def identity_exists(self, guest_id: int) -> bool:
        return await self._check(self._identity, guest_id)

    async def _check(self, oracle: ExistenceOracle, entity_id: int) -> bool:
        try:
            return bool(await asyncio.wait_for(oracle.exists(entity_id), timeout=self._timeout))
        except asyncio.TimeoutError:
            logger.warning(
                "Existence check timed out, failing closed",
                extra={
                    "service": oracle.service_name,
                    "entity_id": entity_id,
                    "timeout": self._timeout,
                },
            )
        except UpstreamUnavailableError as exc:
            logger.warning(
                "Existence check failed, failing closed",
                extra={
                    "service": exc.service,
                    "entity_id": entity_id,
                    "reason": exc.reason,
                },
            )
        except Exception as exc:
            # Un oráculo que no mapea su propio error tampoco confirma existencia.
            logger.error(
                "Existence check raised unexpectedly, failing closed",
                exc_info=exc,
                extra={"service": oracle.service_name, "entity_id": entity_id},
            )
        return False
