import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.application.interfaces.transaction_manager import TransactionManager
from booking_core.domain.errors import PersistenceError
from booking_core.infrastructure.db.retry import is_transient_error

logger = logging.getLogger(__name__)


class SQLAlchemyTransactionManager(TransactionManager):
    """
    Commits at the outermost ``start()`` and rolls back on any error.

    Nested calls join the running unit of work. A transaction autobegun by
    reads issued before ``start()`` is ended first, so the unit of work reads
    from a fresh snapshot (REPEATABLE READ fixes it at the first statement).
    Database failures surface as PersistenceError.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._depth = 0

    @asynccontextmanager
    async def start(self) -> AsyncIterator[None]:
        if self._depth:
            yield
            return
        self._depth += 1
        try:
            if self._session.in_transaction():
                await self._session.commit()
            yield
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            retryable = is_transient_error(exc)
            logger.warning(
                "Transaction rolled back",
                extra={"error": str(exc), "retryable": retryable},
            )
            raise PersistenceError("transaction", str(exc), retryable=retryable) from exc
        except BaseException:
            await self._session.rollback()
            raise
        finally:
            self._depth -= 1
