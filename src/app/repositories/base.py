from typing import Any, Generic, Iterable, Sequence, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Load

from app.core.db import Base

ModelT = TypeVar('ModelT', bound=Base)
CreateSchemaT = TypeVar('CreateSchemaT', bound=BaseModel)
UpdateSchemaT = TypeVar('UpdateSchemaT', bound=BaseModel)


class CRUDBase(Generic[ModelT, CreateSchemaT, UpdateSchemaT]):
    """Базовый класс для CRUD операций."""

    def __init__(self, model: Type[ModelT]) -> None:
        """Инициализация класса."""
        self.model = model

    async def get(
        self,
        session: AsyncSession,
        *predicates: Any,
        many: bool = False,
        order_by: Sequence[Any] = (),
        options: Iterable[Load] = (),
        **filters: Any,
    ) -> list[ModelT] | ModelT | None:
        """Выборка по условиям и равенствам полей модели.

        Параметры:
            session: AsyncSession.
            *predicates: произвольные SQLAlchemy-условия
            (например, Table.is_active.is_(True)).
            many: True — вернуть список, False — первый или None.
            order_by: порядок выдачи.
            options: ORM-опции загрузки (selectinload и т.п.).
            **filters: равенства по полям модели (field=value).

        Исключения:
            ValueError — если передан фильтр по несуществующему полю модели.
        """
        self._validate_filters(filters)
        conditions = [getattr(self.model, k) == v for k, v in filters.items()]
        conditions.extend(predicates)

        stmt = select(self.model).where(*conditions)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if options:
            stmt = stmt.options(*options)

        res = await session.execute(stmt)
        return list(res.scalars().all()) if many else res.scalars().first()

    async def insert(
        self,
        session: AsyncSession,
        data: dict[str, Any],
    ) -> ModelT:
        """Сохраняет запись из словаря полей.

        IntegrityError не перехватывается, его обрабатывает вызывающий.
        """
        db_obj = self.model(**data)
        session.add(db_obj)
        await session.commit()
        await session.refresh(db_obj)
        return db_obj

    async def create(
        self,
        session: AsyncSession,
        obj_in: CreateSchemaT,
        **extra: Any,
    ) -> ModelT:
        """Создание записи из схемы, extra дополняет поля."""
        return await self.insert(
            session,
            {**obj_in.model_dump(exclude_unset=True), **extra},
        )

    async def update_obj(
        self,
        session: AsyncSession,
        db_obj: ModelT,
        obj_in: UpdateSchemaT | dict[str, Any],
    ) -> ModelT:
        """Обновление записи в БД. Неизвестные поля пропускаются."""
        if isinstance(obj_in, dict):
            update_data = obj_in
        else:
            update_data = obj_in.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)
        await session.commit()
        await session.refresh(db_obj)
        return db_obj

    def _validate_filters(self, filters: dict[str, Any]) -> None:
        unknown = [k for k in filters if not hasattr(self.model, k)]
        if unknown:
            raise ValueError(
                'Некорректные поля фильтра для '
                f'{self.model.__name__}: {unknown}',
            )
