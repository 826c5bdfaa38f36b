import os
import tempfile

import pytest

_TEST_DIR = tempfile.mkdtemp(prefix="galleria-tests-")

# Settings are read at import time, so point them at a scratch area first.
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.sqlite3"
os.environ["DATA_DIR"] = _TEST_DIR
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ADMIN_EMAIL"] = "admin@example.com"
os.environ["ADMIN_PASSWORD"] = "admin-password"
os.environ["ADMIN_RESET_SECRET"] = ""


@pytest.fixture(autouse=True, scope="session")
def setup_test_db():
    import asyncio

    from galleria.database import create_tables, async_session
    from galleria.seed import seed_admin

    async def _setup():
        await create_tables()
        async with async_session() as session:
            await seed_admin(session)

    asyncio.run(_setup())
