from pydantic import BaseModel, ConfigDict, Field


class PhotoResponse(BaseModel):
    id: str
    gallery_id: str
    blob_key: str
    original_name: str
    size_bytes: int
    uploaded_at: int
    sort_order: int

    model_config = {"from_attributes": True}


class PhotoPageResponse(BaseModel):
    photos: list[PhotoResponse]
    next_cursor: str | None = Field(default=None, serialization_alias="nextCursor")


class ExportEntry(BaseModel):
    name: str
    url: str


class ExportManifest(BaseModel):
    gallery_name: str = Field(serialization_alias="galleryName")
    photos: list[ExportEntry]

    model_config = ConfigDict(populate_by_name=True)
