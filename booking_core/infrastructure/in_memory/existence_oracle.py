from booking_core.application.interfaces.existence_oracle import ExistenceOracle
from booking_core.domain.errors import UpstreamUnavailableError


class InMemoryExistenceOracle(ExistenceOracle):
    """
    Oracle used when no remote service is configured.

    With ``known_ids=None`` every id exists. ``unavailable`` makes every call
    fail the way an unreachable service would.
    """

    def __init__(
        self,
        service_name: str,
        known_ids: set[int] | None = None,
        unavailable: bool = False,
    ) -> None:
        self.service_name = service_name
        self._known_ids = set(known_ids) if known_ids is not None else None
        self.unavailable = unavailable
        self.calls: list[int] = []

    def seed(self, *entity_ids: int) -> None:
        if self._known_ids is None:
            self._known_ids = set()
        self._known_ids.update(entity_ids)

    async def exists(self, entity_id: int) -> bool:
        self.calls.append(entity_id)
        if self.unavailable:
            raise UpstreamUnavailableError(self.service_name, entity_id, "stub marked unavailable")
        if self._known_ids is None:
            return True
        return entity_id in self._known_ids
