from typing import Optional
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.base import CRUDBase
from app.utils.enums import UserRole


class UserRepository(CRUDBase[User, BaseModel, BaseModel]):
    """Репозиторий пользователей: поиск по логину и учётка администратора."""

    def __init__(self) -> None:
        """Инициализация репозитория пользователей."""
        super().__init__(User)

    async def get_active_by_id(
        self,
        session: AsyncSession,
        user_id: UUID,
    ) -> Optional[User]:
        """Получает активного пользователя по идентификатору."""
        return await self.get(session, User.is_active.is_(True), id=user_id)

    async def get_by_login(
        self,
        session: AsyncSession,
        login: str,
    ) -> Optional[User]:
        """Получает пользователя по имени, email или телефону."""
        query = select(User).where(
            or_(
                User.username == login,
                User.email == login,
                User.phone == login,
            ),
        )
        result = await session.execute(query)
        return result.scalars().first()

    async def upsert_admin(
        self,
        session: AsyncSession,
        *,
        username: str,
        email: Optional[str],
        phone: Optional[str],
        hashed_password: str,
    ) -> User:
        """Создаёт или восстанавливает учётную запись администратора."""
        conditions = [User.username == username]
        if email:
            conditions.append(User.email == email)
        if phone:
            conditions.append(User.phone == phone)
        query = select(User).where(or_(*conditions))
        result = await session.execute(query)
        user = result.scalars().first()
        if user is None:
            user = User()
            session.add(user)
        user.username = username
        user.email = email
        user.phone = phone
        user.hashed_password = hashed_password
        user.role = UserRole.ADMIN
        user.is_active = True
        await session.commit()
        await session.refresh(user)
        return user


user_repository = UserRepository()
