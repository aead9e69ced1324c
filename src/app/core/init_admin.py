from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_password_hash
from app.core.config import settings
from app.repositories.user import user_repository


async def upsert_admin_if_not_exist(session: AsyncSession) -> None:
    """Проверяет наличие дефолтной учётки. Воссоздаёт при необходимости.

    Без ADMIN_USERNAME и ADMIN_PASSWORD в окружении ничего не делает.
    """
    if not (settings.ADMIN_USERNAME and settings.ADMIN_PASSWORD):
        logger.info('Учётка администратора не задана в настройках')
        return
    admin = await user_repository.upsert_admin(
        session,
        username=settings.ADMIN_USERNAME,
        email=settings.ADMIN_EMAIL,
        phone=settings.ADMIN_PHONE,
        hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
    )
    logger.info(f'Учётка администратора {admin.username} актуализирована')
