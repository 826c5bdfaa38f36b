import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from galleria.config import settings
from galleria.models.user import AdminUser
from galleria.utils.clock import unix_now
from galleria.utils.passwords import hash_password

logger = logging.getLogger(__name__)


async def seed_admin(session: AsyncSession) -> None:
    """Create the admin from settings if configured and none exists yet."""
    if not settings.admin_email or not settings.admin_password:
        return

    result = await session.execute(select(AdminUser).limit(1))
    if result.scalars().first() is not None:
        return

    session.add(AdminUser(
        id=str(uuid.uuid5(uuid.NAMESPACE_DNS, f"admin-{settings.admin_email}")),
        email=settings.admin_email.strip().lower(),
        name=settings.admin_name,
        password_hash=hash_password(settings.admin_password),
        created_at=unix_now(),
    ))
    await session.commit()
    logger.info("Seeded admin account %s", settings.admin_email)
