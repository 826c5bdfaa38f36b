import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from galleria.config import DEV_JWT_SECRET, settings
from galleria.database import create_tables, async_session
from galleria.seed import seed_admin
from galleria.routers.admin import router as admin_router
from galleria.routers.admin_auth import router as admin_auth_router
from galleria.routers.galleries import router as galleries_router
from galleria.routers.images import router as images_router
from galleria.routers.subscribe import router as subscribe_router
from galleria.routers.viewer import router as viewer_router
from galleria.utils.exceptions import register_exception_handlers
from galleria.utils.response import success_response

SERVICE_NAME = "galleria"
VERSION = "0.1.0"

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.jwt_secret == DEV_JWT_SECRET:
        logger.warning("JWT_SECRET is not set; using the development secret")
    Path(settings.data_dir).mkdir(parents=True, exist_ok=True)
    await create_tables()
    async with async_session() as session:
        await seed_admin(session)
    yield


app = FastAPI(
    title="Galleria API",
    description="Password-protected photo galleries",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(galleries_router, prefix=settings.api_prefix)
app.include_router(viewer_router, prefix=settings.api_prefix)
app.include_router(images_router, prefix=settings.api_prefix)
app.include_router(admin_auth_router, prefix=settings.api_prefix)
app.include_router(admin_router, prefix=settings.api_prefix)
app.include_router(subscribe_router, prefix=settings.api_prefix)


@app.get("/health")
async def health_check():
    return success_response(data={"service": SERVICE_NAME, "version": VERSION})
