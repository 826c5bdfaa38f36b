from sqlalchemy import Column, String, Integer, ForeignKey, Index

from galleria.database import Base


class Photo(Base):
    __tablename__ = "photos"
    __table_args__ = (
        Index("ix_photos_gallery_order", "gallery_id", "sort_order", "uploaded_at", "seq"),
    )

    # insertion order, last tie-breaker of the listing order
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, nullable=False, unique=True)
    gallery_id = Column(String, ForeignKey("galleries.id", ondelete="CASCADE"), nullable=False)
    blob_key = Column(String, nullable=False, unique=True)
    original_name = Column(String, nullable=False)
    size_bytes = Column(Integer, nullable=False, default=0)
    uploaded_at = Column(Integer, nullable=False)
    sort_order = Column(Integer, nullable=False)
