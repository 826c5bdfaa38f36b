"""Gallery and photo queries: lookups, cursor pagination, admin search."""
import logging
from dataclasses import dataclass

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from galleria.models.gallery import Gallery
from galleria.models.photo import Photo
from galleria.models.subscriber import Subscriber
from galleria.services.storage import BlobStore
from galleria.utils.exceptions import InvalidRequestError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100

MAX_INT64 = 2**63 - 1
MIN_INT64 = -(2**63)

PHOTO_ORDER = (Photo.sort_order.asc(), Photo.uploaded_at.asc(), Photo.seq.asc())

DEFAULT_GALLERY_SORT = "created_desc"
GALLERY_SORTS = {
    "created_desc": (Gallery.created_at.desc(),),
    "created_asc": (Gallery.created_at.asc(),),
    "name_asc": (Gallery.name.asc(),),
    "name_desc": (Gallery.name.desc(),),
    # IS NULL sorts false before true, so undated galleries end up last either way
    "event_asc": (Gallery.event_date.is_(None), Gallery.event_date.asc()),
    "event_desc": (Gallery.event_date.is_(None), Gallery.event_date.desc()),
}


@dataclass(frozen=True)
class PhotoCursor:
    """Position of the last photo a client has seen.

    Encoded as ``"<sort_order>:<uploaded_at>:<seq>"``. A bare ``"<sort_order>"``
    is also accepted and resumes after every photo with that sort order.
    """

    sort_order: int
    uploaded_at: int | None = None
    seq: int | None = None

    @classmethod
    def after(cls, photo: Photo) -> "PhotoCursor":
        return cls(photo.sort_order, photo.uploaded_at, photo.seq)

    @classmethod
    def decode(cls, raw: str) -> "PhotoCursor":
        parts = raw.split(":")
        try:
            values = [int(part) for part in parts]
        except ValueError:
            raise InvalidRequestError("Invalid cursor")
        # columns are 64-bit integers; anything wider cannot be bound
        if len(values) not in (1, 3) or any(not MIN_INT64 <= v <= MAX_INT64 for v in values):
            raise InvalidRequestError("Invalid cursor")
        return cls(*values)

    def encode(self) -> str:
        if self.uploaded_at is None or self.seq is None:
            return str(self.sort_order)
        return f"{self.sort_order}:{self.uploaded_at}:{self.seq}"

    def condition(self):
        if self.uploaded_at is None or self.seq is None:
            return Photo.sort_order > self.sort_order
        return or_(
            Photo.sort_order > self.sort_order,
            and_(Photo.sort_order == self.sort_order, Photo.uploaded_at > self.uploaded_at),
            and_(
                Photo.sort_order == self.sort_order,
                Photo.uploaded_at == self.uploaded_at,
                Photo.seq > self.seq,
            ),
        )


@dataclass
class PhotoPage:
    photos: list[Photo]
    next_cursor: str | None


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_PAGE_SIZE
    return max(1, min(limit, MAX_PAGE_SIZE))


async def get_gallery(db: AsyncSession, gallery_id: str) -> Gallery | None:
    return await db.get(Gallery, gallery_id)


async def get_gallery_by_slug(db: AsyncSession, slug: str) -> Gallery | None:
    result = await db.execute(select(Gallery).where(Gallery.slug == slug))
    return result.scalars().first()


async def get_photo(db: AsyncSession, gallery_id: str, photo_id: str) -> Photo | None:
    result = await db.execute(
        select(Photo).where(Photo.id == photo_id, Photo.gallery_id == gallery_id)
    )
    return result.scalars().first()


async def get_photo_by_blob_key(db: AsyncSession, blob_key: str) -> Photo | None:
    result = await db.execute(select(Photo).where(Photo.blob_key == blob_key))
    return result.scalars().first()


async def banner_blob_key(db: AsyncSession, gallery: Gallery) -> str | None:
    if not gallery.banner_photo_id:
        return None
    photo = await get_photo(db, gallery.id, gallery.banner_photo_id)
    return photo.blob_key if photo else None


async def list_photos_page(
    db: AsyncSession, gallery_id: str, cursor: str | None = None, limit: int | None = None
) -> PhotoPage:
    """One page of a gallery's photos in listing order.

    ``next_cursor`` is set only when the page is full, so a gallery holding an
    exact multiple of ``limit`` photos ends with one empty page.
    """
    limit = clamp_limit(limit)
    query = select(Photo).where(Photo.gallery_id == gallery_id)
    if cursor:
        query = query.where(PhotoCursor.decode(cursor).condition())
    query = query.order_by(*PHOTO_ORDER).limit(limit)

    result = await db.execute(query)
    photos = list(result.scalars().all())

    next_cursor = PhotoCursor.after(photos[-1]).encode() if len(photos) == limit else None
    return PhotoPage(photos=photos, next_cursor=next_cursor)


async def list_all_photos(db: AsyncSession, gallery_id: str) -> list[Photo]:
    result = await db.execute(
        select(Photo).where(Photo.gallery_id == gallery_id).order_by(*PHOTO_ORDER)
    )
    return list(result.scalars().all())


async def list_public_galleries(db: AsyncSession, now: int) -> list[tuple[Gallery, str | None]]:
    """Active, unexpired galleries, newest first, with their banner blob key."""
    result = await db.execute(
        select(Gallery, Photo.blob_key)
        .outerjoin(Photo, Photo.id == Gallery.banner_photo_id)
        .where(
            Gallery.deleted_at.is_(None),
            or_(Gallery.expires_at.is_(None), Gallery.expires_at > now),
        )
        .order_by(Gallery.created_at.desc(), Gallery.id)
    )
    return [(gallery, key) for gallery, key in result.all()]


async def search_galleries(
    db: AsyncSession, q: str = "", sort: str = DEFAULT_GALLERY_SORT
) -> list[Gallery]:
    """Admin directory view: every gallery, soft-deleted ones included."""
    order = GALLERY_SORTS.get(sort, GALLERY_SORTS[DEFAULT_GALLERY_SORT])
    query = select(Gallery)

    q = q.strip().lower()
    if q:
        query = query.where(or_(
            func.lower(Gallery.name).contains(q, autoescape=True),
            func.lower(Gallery.slug).contains(q, autoescape=True),
            func.lower(Gallery.description).contains(q, autoescape=True),
        ))

    result = await db.execute(query.order_by(*order, Gallery.created_at.desc(), Gallery.id))
    return list(result.scalars().all())


async def slug_taken(db: AsyncSession, slug: str) -> bool:
    result = await db.execute(select(Gallery.id).where(Gallery.slug == slug).limit(1))
    return result.first() is not None


async def purge_gallery(db: AsyncSession, storage: BlobStore, gallery: Gallery) -> int:
    """Permanently delete a gallery: blobs first, then rows.

    Not atomic. If a blob delete fails nothing else is touched; if the row
    deletes fail after the blobs are gone, the rows are left pointing at
    missing bytes.
    """
    keys = (await db.execute(
        select(Photo.blob_key).where(Photo.gallery_id == gallery.id)
    )).scalars().all()

    for key in keys:
        await storage.delete(key)

    await db.execute(delete(Photo).where(Photo.gallery_id == gallery.id))
    await db.execute(delete(Subscriber).where(Subscriber.gallery_id == gallery.id))
    await db.execute(delete(Gallery).where(Gallery.id == gallery.id))
    await db.commit()

    logger.info("Permanently deleted gallery %s (%d photos)", gallery.id, len(keys))
    return len(keys)
