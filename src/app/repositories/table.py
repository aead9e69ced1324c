from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Table
from app.repositories.base import CRUDBase
from app.schemas.table import TableCreate, TableUpdate


class TableRepository(CRUDBase[Table, TableCreate, TableUpdate]):
    """Репозиторий для операций со столами."""

    def __init__(self) -> None:
        """Инициализация репозитория столов."""
        super().__init__(Table)

    async def get_active(
        self,
        session: AsyncSession,
        table_id: UUID,
    ) -> Optional[Table]:
        """Получает активный стол по идентификатору."""
        return await self.get(
            session,
            Table.is_active.is_(True),
            id=table_id,
        )

    async def get_multi_active(
        self,
        session: AsyncSession,
        *,
        show_all: bool = False,
    ) -> List[Table]:
        """Столы по возрастанию вместимости, затем номера."""
        conditions = []
        if not show_all:
            conditions.append(Table.is_active.is_(True))
        return await self.get(
            session,
            *conditions,
            many=True,
            order_by=(Table.capacity.asc(), Table.number.asc()),
        )

    async def create_table(
        self,
        session: AsyncSession,
        obj_in: TableCreate,
    ) -> Table:
        """Создает стол с проверкой уникальности номера."""
        try:
            return await self.create(session, obj_in)
        except IntegrityError:
            await session.rollback()
            raise ValueError(f'Стол с номером {obj_in.number} уже существует')

    async def update_with_validation(
        self,
        session: AsyncSession,
        db_obj: Table,
        obj_in: TableUpdate,
    ) -> Table:
        """Обновляет стол с проверкой границ количества гостей."""
        update_data = obj_in.model_dump(exclude_unset=True)
        capacity = update_data.get('capacity', db_obj.capacity)
        min_party_size = update_data.get(
            'min_party_size',
            db_obj.min_party_size,
        )
        if min_party_size > capacity:
            raise ValueError(
                'Минимальное количество гостей больше вместимости стола',
            )
        try:
            return await self.update_obj(session, db_obj, update_data)
        except IntegrityError:
            await session.rollback()
            raise ValueError('Стол с таким номером уже существует')


table_repository = TableRepository()
