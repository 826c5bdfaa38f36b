import hmac
import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from galleria.config import settings
from galleria.database import get_db
from galleria.schemas.auth import AdminResetRequest, ViewerLoginRequest
from galleria.services import directory
from galleria.services.tokens import (
    clear_admin_cookie,
    clear_viewer_cookie,
    issue_viewer_token,
    set_viewer_cookie,
)
from galleria.utils.clock import unix_now
from galleria.utils.exceptions import (
    ForbiddenError,
    GalleryExpiredError,
    NotFoundError,
    UnauthenticatedError,
)
from galleria.utils.passwords import verify_password
from galleria.utils.response import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/viewer", tags=["viewer"])


@router.post("/gallery/{slug}/login")
async def login(
    slug: str,
    payload: ViewerLoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    gallery = await directory.get_gallery_by_slug(db, slug)
    if gallery is None or gallery.is_deleted:
        raise NotFoundError("Gallery not found")
    if gallery.is_expired(unix_now()):
        raise GalleryExpiredError("This gallery has expired")

    # Public galleries accept any password so the UI can get a token silently.
    if not gallery.is_public and not verify_password(payload.password, gallery.password_hash):
        raise UnauthenticatedError("Invalid password")

    set_viewer_cookie(response, issue_viewer_token(gallery.id))
    return success_response(data={"slug": gallery.slug})


@router.post("/gallery/logout")
async def logout(response: Response):
    clear_viewer_cookie(response)
    return success_response()


@router.post("/admin/reset")
async def reset_admin_session(payload: AdminResetRequest, response: Response):
    """Emergency escape hatch: drop the admin session cookie."""
    expected = settings.admin_reset_secret
    if not expected or not hmac.compare_digest(payload.secret.encode(), expected.encode()):
        raise ForbiddenError("Invalid reset secret")

    clear_admin_cookie(response)
    logger.warning("Admin session cookie cleared via reset secret")
    return success_response(message="Admin session cleared")
