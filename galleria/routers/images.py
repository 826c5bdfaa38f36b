from typing import Literal

from fastapi import APIRouter, Depends

from galleria.dependencies import get_storage, require_image_access
from galleria.models.photo import Photo
from galleria.services.images import full_response, thumbnail_response
from galleria.services.storage import BlobStore
from galleria.utils.exceptions import NotFoundError

router = APIRouter(prefix="/images", tags=["images"])


@router.get("/{key:path}")
async def get_image(
    variant: Literal["thumb", "full"] = "thumb",
    photo: Photo = Depends(require_image_access),
    storage: BlobStore = Depends(get_storage),
):
    blob = await storage.get(photo.blob_key)
    if blob is None:
        raise NotFoundError("Image not found")

    if variant == "full":
        return full_response(blob)
    return await thumbnail_response(blob)
