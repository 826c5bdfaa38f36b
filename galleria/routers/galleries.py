from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from galleria.config import settings
from galleria.database import get_db
from galleria.dependencies import get_storage, require_gallery_viewer
from galleria.models.gallery import Gallery
from galleria.schemas.gallery import GalleryResponse
from galleria.schemas.photo import PhotoPageResponse, PhotoResponse
from galleria.services import directory, export
from galleria.services.storage import BlobStore
from galleria.utils.clock import unix_now
from galleria.utils.exceptions import GalleryExpiredError, NotFoundError
from galleria.utils.response import success_response

router = APIRouter(prefix="/galleries", tags=["galleries"])


def _gallery_data(gallery: Gallery, banner_key: str | None) -> GalleryResponse:
    data = GalleryResponse.model_validate(gallery)
    data.banner_blob_key = banner_key
    return data


@router.get("")
async def list_galleries(db: AsyncSession = Depends(get_db)):
    rows = await directory.list_public_galleries(db, unix_now())
    return success_response(data=[_gallery_data(g, key) for g, key in rows])


@router.get("/{slug}")
async def get_gallery(slug: str, db: AsyncSession = Depends(get_db)):
    # Metadata of private galleries is public too; only photos are gated.
    gallery = await directory.get_gallery_by_slug(db, slug)
    if gallery is None or gallery.is_deleted:
        raise NotFoundError("Gallery not found")
    if gallery.is_expired(unix_now()):
        raise GalleryExpiredError("This gallery has expired")

    banner_key = await directory.banner_blob_key(db, gallery)
    return success_response(data=_gallery_data(gallery, banner_key))


@router.get("/{slug}/photos")
async def list_photos(
    cursor: str | None = None,
    limit: int = directory.DEFAULT_PAGE_SIZE,
    gallery: Gallery = Depends(require_gallery_viewer),
    db: AsyncSession = Depends(get_db),
):
    page = await directory.list_photos_page(db, gallery.id, cursor=cursor, limit=limit)
    return success_response(data=PhotoPageResponse(
        photos=[PhotoResponse.model_validate(p) for p in page.photos],
        next_cursor=page.next_cursor,
    ))


@router.get("/{slug}/export")
async def export_manifest(
    gallery: Gallery = Depends(require_gallery_viewer),
    db: AsyncSession = Depends(get_db),
):
    photos = await directory.list_all_photos(db, gallery.id)
    return success_response(data=export.build_manifest(gallery, photos, settings.api_prefix))


@router.get("/{slug}/export/zip")
async def export_zip(
    gallery: Gallery = Depends(require_gallery_viewer),
    db: AsyncSession = Depends(get_db),
    storage: BlobStore = Depends(get_storage),
):
    photos = await directory.list_all_photos(db, gallery.id)
    filename = export.archive_filename(gallery.name)
    return StreamingResponse(
        export.stream_zip(photos, storage),
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
