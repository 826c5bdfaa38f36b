"""Serve stored photos, full size or as thumbnails."""
import asyncio
import io
import logging

from fastapi import Response
from fastapi.responses import StreamingResponse
from PIL import Image, ImageOps

from galleria.config import settings
from galleria.services.storage import BlobObject

logger = logging.getLogger(__name__)

CACHE_CONTROL = "private, max-age=86400"
THUMBNAIL_CONTENT_TYPE = "image/webp"


def make_thumbnail(image_data: bytes, max_width: int, quality: int) -> bytes:
    """Resize to at most ``max_width`` wide and re-encode as WebP."""
    img = Image.open(io.BytesIO(image_data))
    img = ImageOps.exif_transpose(img)

    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA" if "A" in img.getbands() else "RGB")

    if img.width > max_width:
        ratio = max_width / img.width
        img = img.resize((max_width, max(1, int(img.height * ratio))), Image.Resampling.LANCZOS)

    output = io.BytesIO()
    img.save(output, format="WEBP", quality=quality)
    return output.getvalue()


def full_response(blob: BlobObject) -> StreamingResponse:
    return StreamingResponse(
        blob.iter_chunks(),
        media_type=blob.content_type,
        headers={
            "Cache-Control": CACHE_CONTROL,
            "ETag": blob.etag,
            "Content-Length": str(blob.size),
        },
    )


async def thumbnail_response(blob: BlobObject) -> Response:
    """Thumbnail of ``blob``, or the original bytes if the transform fails."""
    original = await blob.read()
    try:
        thumbnail = await asyncio.to_thread(
            make_thumbnail, original, settings.thumbnail_width, settings.thumbnail_quality
        )
    except Exception as e:
        logger.warning("Thumbnail transform failed for %s, serving original: %s", blob.key, e)
        return Response(
            content=original,
            media_type=blob.content_type,
            headers={"Cache-Control": CACHE_CONTROL, "ETag": blob.etag},
        )

    return Response(
        content=thumbnail,
        media_type=THUMBNAIL_CONTENT_TYPE,
        headers={"Cache-Control": CACHE_CONTROL},
    )
