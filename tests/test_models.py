import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from galleria.database import Base
from galleria.models.gallery import Gallery
from galleria.models.photo import Photo
from galleria.models.subscriber import Subscriber
from galleria.models.user import AdminUser


@pytest_asyncio.fixture
async def db_session():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session
    await engine.dispose()


def _gallery(gallery_id="g-001", slug="smith-wedding", **overrides):
    fields = dict(id=gallery_id, slug=slug, name="Smith Wedding", password_hash="hashed", created_at=100)
    fields.update(overrides)
    return Gallery(**fields)


@pytest.mark.asyncio
async def test_create_gallery(db_session):
    db_session.add(_gallery())
    await db_session.commit()

    result = await db_session.get(Gallery, "g-001")
    assert result is not None
    assert result.slug == "smith-wedding"
    assert result.is_public is False
    assert result.deleted_at is None
    assert result.is_deleted is False


@pytest.mark.asyncio
async def test_gallery_slug_is_unique(db_session):
    db_session.add(_gallery())
    await db_session.commit()

    db_session.add(_gallery(gallery_id="g-002"))
    with pytest.raises(IntegrityError):
        await db_session.commit()


def test_gallery_expiry_boundary():
    gallery = _gallery(expires_at=1000)
    assert gallery.is_expired(999) is False
    assert gallery.is_expired(1000) is True
    assert _gallery().is_expired(10**12) is False


@pytest.mark.asyncio
async def test_create_photo_assigns_sequence(db_session):
    db_session.add(_gallery())
    db_session.add_all([
        Photo(id=f"p-00{i}", gallery_id="g-001", blob_key=f"galleries/g-001/p-00{i}.jpg",
              original_name="IMG.jpg", size_bytes=10, uploaded_at=500, sort_order=500)
        for i in range(3)
    ])
    await db_session.commit()

    result = await db_session.execute(select(Photo).order_by(Photo.seq))
    photos = result.scalars().all()
    assert [p.id for p in photos] == ["p-000", "p-001", "p-002"]
    assert photos[0].seq < photos[1].seq < photos[2].seq


@pytest.mark.asyncio
async def test_subscriber_unique_per_gallery(db_session):
    db_session.add(_gallery())
    db_session.add(Subscriber(id="s-001", gallery_id="g-001", email="fan@example.com",
                              confirmation_token="tok-1", created_at=100))
    await db_session.commit()

    result = await db_session.get(Subscriber, "s-001")
    assert result.verified is False

    db_session.add(Subscriber(id="s-002", gallery_id="g-001", email="fan@example.com",
                              confirmation_token="tok-2", created_at=101))
    with pytest.raises(IntegrityError):
        await db_session.commit()


@pytest.mark.asyncio
async def test_create_admin_user(db_session):
    db_session.add(AdminUser(id="u-001", email="owner@example.com", name="Owner",
                             password_hash="hashed", created_at=100))
    await db_session.commit()

    result = await db_session.get(AdminUser, "u-001")
    assert result is not None
    assert result.email == "owner@example.com"
