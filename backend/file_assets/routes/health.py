"""Health check: database and storage connectivity."""
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from file_assets.database import get_db
from file_assets.dependencies import get_disk_store
from file_assets.errors import StorageWriteError
from file_assets.services.disk_store import DiskContentStore

router = APIRouter(prefix="/api/health", tags=["health"])

_started_at = time.monotonic()


@router.get("")
async def health_check(
    db: AsyncSession = Depends(get_db),
    store: DiskContentStore = Depends(get_disk_store),
):
    """Verify API, database and storage connectivity."""
    details = {
        "database": {"status": "unknown"},
        "storage": {"status": "unknown"},
        "server": {"status": "healthy", "uptime": round(time.monotonic() - _started_at, 3)},
    }

    try:
        await db.execute(text("SELECT 1"))
        details["database"]["status"] = "healthy"
    except SQLAlchemyError as e:
        details["database"] = {"status": "unhealthy", "error": str(e)}

    try:
        await store.ping()
        details["storage"]["status"] = "healthy"
    except StorageWriteError as e:
        details["storage"] = {"status": "unhealthy", "error": e.message}

    healthy = all(d["status"] == "healthy" for d in details.values())
    status = "healthy" if healthy else "unhealthy"
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": status, "details": details},
    )
