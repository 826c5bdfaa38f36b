import logging
import re
import uuid
from collections.abc import AsyncIterator
from pathlib import PurePosixPath

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from galleria.models.gallery import Gallery
from galleria.models.photo import Photo
from galleria.services.storage import BlobStore
from galleria.utils.clock import unix_now

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = "jpg"
DEFAULT_FILENAME = "upload"
_EXTENSION_PATTERN = re.compile(r"^[a-z0-9]{1,10}$")


def safe_filename(name: str | None, default: str = DEFAULT_FILENAME) -> str:
    """Last path component of a client-supplied name, never a directory reference."""
    base = PurePosixPath((name or "").replace("\\", "/")).name.strip()
    if base in ("", ".", ".."):
        return default
    return base


def extension_for(filename: str | None) -> str:
    if not filename or "." not in filename:
        return DEFAULT_EXTENSION
    ext = filename.rsplit(".", 1)[1].lower()
    return ext if _EXTENSION_PATTERN.match(ext) else DEFAULT_EXTENSION


def blob_key_for(gallery_id: str, photo_id: str, ext: str) -> str:
    return f"galleries/{gallery_id}/{photo_id}.{ext}"


async def _read_chunks(upload: UploadFile, chunk_size: int) -> AsyncIterator[bytes]:
    while chunk := await upload.read(chunk_size):
        yield chunk


async def store_upload(
    db: AsyncSession,
    storage: BlobStore,
    gallery: Gallery,
    upload: UploadFile,
    chunk_size: int,
) -> Photo:
    """Stream one uploaded file into blob storage, then record it.

    The blob is written before the row, so a failure can leave an orphan
    blob but never a row pointing at missing bytes.
    """
    photo_id = str(uuid.uuid4())
    original_name = safe_filename(upload.filename)
    key = blob_key_for(gallery.id, photo_id, extension_for(original_name))

    size = await storage.put_stream(key, _read_chunks(upload, chunk_size))

    now = unix_now()
    photo = Photo(
        id=photo_id,
        gallery_id=gallery.id,
        blob_key=key,
        original_name=original_name,
        size_bytes=size,
        uploaded_at=now,
        sort_order=now,
    )
    db.add(photo)
    await db.commit()
    await db.refresh(photo)

    logger.info("Uploaded %s to gallery %s as %s (%d bytes)", original_name, gallery.id, key, size)
    return photo
