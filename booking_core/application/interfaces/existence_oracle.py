"""Interface ExistenceOracle - Puerto hacia servicios dueños de entidades remotas."""

from abc import ABC, abstractmethod


class ExistenceOracle(ABC):
    """
    Responde si una entidad remota (listing, identidad) existe ahora.

    Contrato: llamada idempotente y segura de reintentar. Una caída,
    timeout o respuesta inesperada del servicio remoto se reporta como
    UpstreamUnavailableError, nunca como True.
    """

    service_name: str = "remote"

    @abstractmethod
    async def exists(self, entity_id: int) -> bool:
        """
        Verifica la existencia de la entidad.

        Args:
            entity_id: Identificador de la entidad en el servicio remoto.

        Returns:
            True si existe, False si el servicio confirma que no existe.

        Raises:
            UpstreamUnavailableError: si no se pudo obtener una respuesta.
        """
        raise NotImplementedError
