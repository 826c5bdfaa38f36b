from sqlalchemy import Column, String, Integer, Boolean

from galleria.database import Base


class Gallery(Base):
    __tablename__ = "galleries"

    id = Column(String, primary_key=True)
    slug = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    # bcrypt hash; empty only for public galleries created without a password
    password_hash = Column(String, nullable=False, default="")
    is_public = Column(Boolean, nullable=False, default=False)
    # weak reference to photos.id, checked on write only
    banner_photo_id = Column(String, nullable=True)
    event_date = Column(Integer, nullable=True)
    expires_at = Column(Integer, nullable=True)
    deleted_at = Column(Integer, nullable=True)
    created_at = Column(Integer, nullable=False)

    def is_expired(self, now: int) -> bool:
        return self.expires_at is not None and now >= self.expires_at

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
