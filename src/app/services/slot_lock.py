import asyncio
import hashlib
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator
from uuid import UUID
from weakref import WeakValueDictionary

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession


def advisory_key(table_id: UUID, reservation_date: date) -> int:
    """64-битный ключ advisory-блокировки PostgreSQL для стола и даты."""
    digest = hashlib.sha256(
        f'{table_id}:{reservation_date.isoformat()}'.encode(),
    ).digest()
    return int.from_bytes(digest[:8], 'big', signed=True)


class SlotLockRegistry:
    """Блокировки записи броней по паре (стол, дата).

    Внутри процесса используется asyncio.Lock. На PostgreSQL
    дополнительно берётся транзакционная advisory-блокировка, чтобы
    несколько процессов приложения не заняли один слот.
    """

    def __init__(self) -> None:
        """Блокировки создаются по требованию и удаляются без ссылок."""
        self._locks: WeakValueDictionary[
            tuple[UUID, date],
            asyncio.Lock,
        ] = WeakValueDictionary()

    def _lock_for(self, key: tuple[UUID, date]) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(
        self,
        session: AsyncSession,
        table_id: UUID,
        reservation_date: date,
    ) -> AsyncIterator[None]:
        """Держит блокировку стола на дату до выхода из контекста.

        Если блок завершился исключением, незакоммиченная транзакция
        откатывается, и advisory-блокировка освобождается.
        """
        lock = self._lock_for((table_id, reservation_date))
        async with lock:
            try:
                if session.get_bind().dialect.name == 'postgresql':
                    await session.execute(
                        select(
                            func.pg_advisory_xact_lock(
                                advisory_key(table_id, reservation_date),
                            ),
                        ),
                    )
                yield
            except BaseException:
                await session.rollback()
                raise


slot_locks = SlotLockRegistry()
