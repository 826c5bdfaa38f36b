from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from galleria.database import get_db
from galleria.models.gallery import Gallery
from galleria.models.photo import Photo
from galleria.models.user import AdminUser
from galleria.services import directory
from galleria.services.access import AccessDecision, GateMode, Outcome, RequestContext, authorize
from galleria.services.storage import BlobStore, get_blob_store
from galleria.services.tokens import ADMIN_COOKIE, VIEWER_COOKIE
from galleria.utils.clock import unix_now
from galleria.utils.exceptions import (
    AppException,
    ForbiddenError,
    GalleryExpiredError,
    NotFoundError,
    UnauthenticatedError,
)

_DENIALS: dict[Outcome, type[AppException]] = {
    Outcome.NOT_FOUND: NotFoundError,
    Outcome.EXPIRED: GalleryExpiredError,
    Outcome.UNAUTHENTICATED: UnauthenticatedError,
    Outcome.FORBIDDEN: ForbiddenError,
}


async def get_context(request: Request, db: AsyncSession = Depends(get_db)) -> RequestContext:
    return RequestContext(
        db=db,
        now=unix_now(),
        viewer_token=request.cookies.get(VIEWER_COOKIE),
        admin_token=request.cookies.get(ADMIN_COOKIE),
    )


def get_storage() -> BlobStore:
    return get_blob_store()


def raise_for_decision(decision: AccessDecision) -> Gallery:
    if decision.allowed:
        return decision.gallery
    raise _DENIALS[decision.outcome](decision.reason)


async def require_admin(ctx: RequestContext = Depends(get_context)) -> AdminUser:
    admin = await ctx.admin_user()
    if admin is None:
        raise UnauthenticatedError("Unauthorized")
    return admin


async def require_gallery_viewer(slug: str, ctx: RequestContext = Depends(get_context)) -> Gallery:
    gallery = await directory.get_gallery_by_slug(ctx.db, slug)
    return raise_for_decision(await authorize(ctx, gallery, GateMode.VIEWER))


async def require_image_access(key: str, ctx: RequestContext = Depends(get_context)) -> Photo:
    photo = await directory.get_photo_by_blob_key(ctx.db, key)
    if photo is None:
        raise NotFoundError("Image not found")
    gallery = await directory.get_gallery(ctx.db, photo.gallery_id)
    raise_for_decision(await authorize(ctx, gallery, GateMode.VIEWER_OR_ADMIN))
    return photo
