from booking_core.application.interfaces.idempotency_repo import IdempotencyRecord, IdempotencyRepo


class InMemoryIdempotencyRepo(IdempotencyRepo):
    def __init__(self) -> None:
        self._records: dict[tuple[str, str], IdempotencyRecord] = {}

    def snapshot(self) -> dict:
        return dict(self._records)

    def restore(self, state: dict) -> None:
        self._records = state

    async def get(self, scope: str, idem_key: str) -> IdempotencyRecord | None:
        return self._records.get((scope, idem_key))

    async def save(self, record: IdempotencyRecord) -> None:
        key = (record.scope, record.idem_key)
        if key in self._records:
            raise ValueError("Idempotency key already exists")
        self._records[key] = record
