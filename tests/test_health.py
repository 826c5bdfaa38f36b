import pytest
from httpx import AsyncClient, ASGITransport
from galleria.main import app


@pytest.mark.asyncio
async def test_health_endpoint():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "success"
    assert data["data"]["service"] == "galleria"
    assert data["data"]["version"] == "0.1.0"
    assert data["message"] is None


@pytest.mark.asyncio
async def test_unknown_route_is_404():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/nope")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_startup_creates_schema_and_seeds_admin():
    from sqlalchemy import func, inspect, select

    from galleria.database import async_session, engine
    from galleria.main import lifespan
    from galleria.models.user import AdminUser

    async with lifespan(app):
        async with engine.connect() as conn:
            columns = await conn.run_sync(
                lambda sync_conn: {c["name"] for c in inspect(sync_conn).get_columns("galleries")}
            )
        async with async_session() as db:
            admins = (await db.execute(select(func.count()).select_from(AdminUser))).scalar_one()

    assert {"event_date", "expires_at", "deleted_at"} <= columns
    assert admins >= 1
