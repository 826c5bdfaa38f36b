import logging
import uuid

from fastapi import APIRouter, Depends, File, Response, UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from galleria.config import settings
from galleria.database import get_db
from galleria.dependencies import get_storage, require_admin
from galleria.models.gallery import Gallery
from galleria.models.user import AdminUser
from galleria.schemas.auth import AdminResponse
from galleria.schemas.gallery import (
    AdminGalleryResponse,
    BannerUpdate,
    GalleryCreate,
    GallerySettingsUpdate,
    PasswordUpdate,
    VisibilityUpdate,
)
from galleria.schemas.photo import PhotoResponse
from galleria.services import directory, export
from galleria.services.storage import BlobStore
from galleria.services.tokens import issue_viewer_token, set_viewer_cookie
from galleria.services.uploads import store_upload
from galleria.utils.clock import unix_now
from galleria.utils.exceptions import ConflictError, InvalidRequestError, NotFoundError
from galleria.utils.passwords import hash_password
from galleria.utils.response import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


async def _load_gallery(db: AsyncSession, gallery_id: str) -> Gallery:
    gallery = await directory.get_gallery(db, gallery_id)
    if gallery is None:
        raise NotFoundError("Gallery not found")
    return gallery


async def _gallery_data(db: AsyncSession, gallery: Gallery) -> AdminGalleryResponse:
    data = AdminGalleryResponse.model_validate(gallery)
    data.banner_blob_key = await directory.banner_blob_key(db, gallery)
    return data


@router.get("/me")
async def me(admin: AdminUser = Depends(require_admin)):
    return success_response(data=AdminResponse.model_validate(admin))


@router.get("/galleries")
async def search_galleries(
    q: str = "",
    sort: str = directory.DEFAULT_GALLERY_SORT,
    db: AsyncSession = Depends(get_db),
):
    galleries = await directory.search_galleries(db, q=q, sort=sort)
    return success_response(data=[AdminGalleryResponse.model_validate(g) for g in galleries])


@router.post("/galleries", status_code=201)
async def create_gallery(payload: GalleryCreate, db: AsyncSession = Depends(get_db)):
    if await directory.slug_taken(db, payload.slug):
        raise ConflictError("Slug already in use")

    gallery = Gallery(
        id=str(uuid.uuid4()),
        slug=payload.slug,
        name=payload.name,
        description=payload.description,
        password_hash=hash_password(payload.password) if payload.password else "",
        is_public=payload.is_public,
        event_date=payload.event_date,
        expires_at=payload.expires_at,
        created_at=unix_now(),
    )
    db.add(gallery)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Slug already in use")
    logger.info("Created gallery %s (%s)", gallery.slug, gallery.id)

    return success_response(data=await _gallery_data(db, gallery))


@router.delete("/galleries/{gallery_id}")
async def soft_delete_gallery(gallery_id: str, db: AsyncSession = Depends(get_db)):
    gallery = await _load_gallery(db, gallery_id)
    if gallery.deleted_at is None:
        gallery.deleted_at = unix_now()
        await db.commit()
    return success_response(data=await _gallery_data(db, gallery))


@router.post("/galleries/{gallery_id}/restore")
async def restore_gallery(gallery_id: str, db: AsyncSession = Depends(get_db)):
    gallery = await _load_gallery(db, gallery_id)
    gallery.deleted_at = None
    await db.commit()
    return success_response(data=await _gallery_data(db, gallery))


@router.delete("/galleries/{gallery_id}/permanent")
async def purge_gallery(
    gallery_id: str,
    db: AsyncSession = Depends(get_db),
    storage: BlobStore = Depends(get_storage),
):
    gallery = await _load_gallery(db, gallery_id)
    removed = await directory.purge_gallery(db, storage, gallery)
    return success_response(data={"deleted_photos": removed})


@router.patch("/galleries/{gallery_id}/banner")
async def set_banner(gallery_id: str, payload: BannerUpdate, db: AsyncSession = Depends(get_db)):
    gallery = await _load_gallery(db, gallery_id)
    if payload.photo_id and await directory.get_photo(db, gallery.id, payload.photo_id) is None:
        raise NotFoundError("Photo not found in this gallery")

    gallery.banner_photo_id = payload.photo_id or None
    await db.commit()
    return success_response(data=await _gallery_data(db, gallery))


@router.patch("/galleries/{gallery_id}/visibility")
async def set_visibility(gallery_id: str, payload: VisibilityUpdate, db: AsyncSession = Depends(get_db)):
    gallery = await _load_gallery(db, gallery_id)
    if payload.password:
        gallery.password_hash = hash_password(payload.password)
    if not payload.is_public and not gallery.password_hash:
        raise InvalidRequestError("Set a password before making this gallery private")

    gallery.is_public = payload.is_public
    await db.commit()
    return success_response(data=await _gallery_data(db, gallery))


@router.patch("/galleries/{gallery_id}/settings")
async def update_settings(gallery_id: str, payload: GallerySettingsUpdate, db: AsyncSession = Depends(get_db)):
    gallery = await _load_gallery(db, gallery_id)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise InvalidRequestError("Nothing to update")
    if "name" in changes and not changes["name"]:
        raise InvalidRequestError("Name cannot be empty")

    for field, value in changes.items():
        setattr(gallery, field, value)
    await db.commit()
    return success_response(data=await _gallery_data(db, gallery))


@router.patch("/galleries/{gallery_id}/password")
async def reset_password(gallery_id: str, payload: PasswordUpdate, db: AsyncSession = Depends(get_db)):
    gallery = await _load_gallery(db, gallery_id)
    gallery.password_hash = hash_password(payload.password)
    await db.commit()
    return success_response()


@router.get("/galleries/{gallery_id}/export")
async def export_manifest(gallery_id: str, db: AsyncSession = Depends(get_db)):
    gallery = await _load_gallery(db, gallery_id)
    photos = await directory.list_all_photos(db, gallery.id)
    return success_response(data=export.build_manifest(gallery, photos, settings.api_prefix))


@router.get("/galleries/{gallery_id}/photos")
async def list_photos(gallery_id: str, db: AsyncSession = Depends(get_db)):
    gallery = await _load_gallery(db, gallery_id)
    photos = await directory.list_all_photos(db, gallery.id)
    return success_response(data={
        "gallery": await _gallery_data(db, gallery),
        "photos": [PhotoResponse.model_validate(p) for p in photos],
    })


@router.post("/galleries/{gallery_id}/photos", status_code=201)
async def upload_photo(
    gallery_id: str,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    storage: BlobStore = Depends(get_storage),
):
    gallery = await _load_gallery(db, gallery_id)
    photo = await store_upload(db, storage, gallery, file, settings.upload_chunk_size)
    return success_response(data=PhotoResponse.model_validate(photo))


@router.delete("/galleries/{gallery_id}/photos/{photo_id}")
async def delete_photo(
    gallery_id: str,
    photo_id: str,
    db: AsyncSession = Depends(get_db),
    storage: BlobStore = Depends(get_storage),
):
    photo = await directory.get_photo(db, gallery_id, photo_id)
    if photo is None:
        raise NotFoundError("Photo not found")

    await storage.delete(photo.blob_key)
    gallery = await directory.get_gallery(db, gallery_id)
    if gallery is not None and gallery.banner_photo_id == photo.id:
        gallery.banner_photo_id = None
    await db.delete(photo)
    await db.commit()
    return success_response()


@router.post("/galleries/{gallery_id}/viewer-bypass")
async def viewer_bypass(gallery_id: str, response: Response, db: AsyncSession = Depends(get_db)):
    """Give the admin a viewer token without knowing the gallery password."""
    gallery = await directory.get_gallery(db, gallery_id)
    if gallery is None or gallery.is_deleted:
        raise NotFoundError("Gallery not found")

    set_viewer_cookie(response, issue_viewer_token(gallery.id))
    return success_response(data={"slug": gallery.slug})
