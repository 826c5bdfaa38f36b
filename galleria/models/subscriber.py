from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, UniqueConstraint

from galleria.database import Base


class Subscriber(Base):
    __tablename__ = "gallery_subscribers"
    __table_args__ = (UniqueConstraint("gallery_id", "email", name="uq_subscriber_gallery_email"),)

    id = Column(String, primary_key=True)
    gallery_id = Column(String, ForeignKey("galleries.id", ondelete="CASCADE"), nullable=False)
    email = Column(String, nullable=False)
    confirmation_token = Column(String, nullable=False, unique=True)
    verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(Integer, nullable=False)
