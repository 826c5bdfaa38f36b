import logging
import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from galleria.database import get_db
from galleria.models.user import AdminUser
from galleria.schemas.auth import AdminLoginRequest, AdminResponse, AdminSetupRequest
from galleria.services.tokens import clear_admin_cookie, issue_admin_token, set_admin_cookie
from galleria.utils.clock import unix_now
from galleria.utils.exceptions import ForbiddenError, UnauthenticatedError
from galleria.utils.passwords import hash_password, verify_password
from galleria.utils.response import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/setup", status_code=201)
async def setup(payload: AdminSetupRequest, response: Response, db: AsyncSession = Depends(get_db)):
    """One-time creation of the single admin account."""
    result = await db.execute(select(AdminUser.id).limit(1))
    if result.first() is not None:
        raise ForbiddenError("Admin already configured")

    admin = AdminUser(
        id=str(uuid.uuid4()),
        email=payload.email.strip().lower(),
        name=payload.name,
        password_hash=hash_password(payload.password),
        created_at=unix_now(),
    )
    db.add(admin)
    await db.commit()
    logger.info("Admin account created for %s", admin.email)

    set_admin_cookie(response, issue_admin_token(admin.id))
    return success_response(data=AdminResponse.model_validate(admin))


@router.post("/login")
async def login(payload: AdminLoginRequest, response: Response, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(AdminUser).where(AdminUser.email == payload.email.strip().lower())
    )
    admin = result.scalars().first()

    if admin is None or not verify_password(payload.password, admin.password_hash):
        raise UnauthenticatedError("Invalid credentials")

    set_admin_cookie(response, issue_admin_token(admin.id))
    return success_response(data=AdminResponse.model_validate(admin))


@router.post("/logout")
async def logout(response: Response):
    clear_admin_cookie(response)
    return success_response()
