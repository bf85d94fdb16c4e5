"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from file_assets import __version__
from file_assets.config import settings
from file_assets.database import async_session, engine
from file_assets.dependencies import get_disk_store
from file_assets.error_handler import register_error_handlers
from file_assets.models import Base
from file_assets.services.reconciliation import sweep_orphan_blobs
from file_assets.services.record_gateway import FileAssetGateway

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and sweep orphan blobs on startup, dispose the engine on shutdown."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Blobs left behind by creates that failed before a previous shutdown
    if settings.ORPHAN_SWEEP_ON_STARTUP:
        async with async_session() as session:
            await sweep_orphan_blobs(get_disk_store(), FileAssetGateway(session))

    yield

    await engine.dispose()


configure_logging()

app = FastAPI(
    title="File Assets API",
    version=__version__,
    description="Stores file content on disk and file metadata in a record store.",
    lifespan=lifespan,
)

# CORS
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Register routers
from file_assets.routes.files import router as files_router
from file_assets.routes.health import router as health_router
app.include_router(files_router)
app.include_router(health_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("file_assets.main:app", host="0.0.0.0", port=settings.API_PORT)
