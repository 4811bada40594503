from dataclasses import asdict, fields

from sqlalchemy import and_, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.application.interfaces.idempotency_repo import IdempotencyRecord, IdempotencyRepo
from booking_core.infrastructure.db.tables import idempotency_keys

# Columns that map one-to-one onto IdempotencyRecord fields.
RECORD_COLUMNS = [idempotency_keys.c[f.name] for f in fields(IdempotencyRecord)]


def _key_matches(scope: str, idem_key: str):
    return and_(idempotency_keys.c.scope == scope, idempotency_keys.c.idem_key == idem_key)


class IdempotencyRepoSQL(IdempotencyRepo):
    """
    Stores the first response given for a (scope, key) pair.

    A second ``save`` of the same pair violates ``uq_idempotency_scope_key``;
    the transaction manager turns that into a non-retryable PersistenceError.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, scope: str, idem_key: str) -> IdempotencyRecord | None:
        result = await self._session.execute(select(*RECORD_COLUMNS).where(_key_matches(scope, idem_key)))
        row = result.mappings().one_or_none()
        if row is None:
            return None
        record = IdempotencyRecord(**row)
        record.response_json = record.response_json or {}
        return record

    async def save(self, record: IdempotencyRecord) -> None:
        await self._session.execute(insert(idempotency_keys).values(**asdict(record)))
