import re

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
MIN_PASSWORD_LENGTH = 4
MAX_TIMESTAMP = 2**63 - 1


def _check_password(value: str | None) -> str | None:
    if value is not None and len(value) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return value


class GalleryCreate(BaseModel):
    name: str = Field(min_length=1)
    slug: str
    password: str | None = None
    description: str | None = None
    is_public: bool = False
    event_date: int | None = Field(default=None, ge=0, le=MAX_TIMESTAMP)
    expires_at: int | None = Field(default=None, ge=0, le=MAX_TIMESTAMP)

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        if not SLUG_PATTERN.match(v):
            raise ValueError("Slug must only contain lowercase letters, numbers, and dashes")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str | None) -> str | None:
        return _check_password(v or None)

    @model_validator(mode="after")
    def require_password_when_private(self) -> "GalleryCreate":
        if not self.is_public and not self.password:
            raise ValueError("A password is required for private galleries")
        return self


class GallerySettingsUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    event_date: int | None = Field(default=None, ge=0, le=MAX_TIMESTAMP)
    expires_at: int | None = Field(default=None, ge=0, le=MAX_TIMESTAMP)


class VisibilityUpdate(BaseModel):
    is_public: bool
    password: str | None = None

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str | None) -> str | None:
        return _check_password(v or None)


class PasswordUpdate(BaseModel):
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)


class BannerUpdate(BaseModel):
    photo_id: str | None = Field(default=None, alias="photoId")

    model_config = ConfigDict(populate_by_name=True)


class GalleryResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    is_public: bool
    banner_photo_id: str | None = None
    banner_blob_key: str | None = None
    event_date: int | None = None
    expires_at: int | None = None
    created_at: int

    model_config = {"from_attributes": True}


class AdminGalleryResponse(GalleryResponse):
    deleted_at: int | None = None
