"""FastAPI dependencies shared by the routes."""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from file_assets.database import get_db
from file_assets.services.disk_store import DiskContentStore
from file_assets.services.file_lifecycle import FileLifecycleManager
from file_assets.services.record_gateway import FileAssetGateway


@lru_cache
def get_disk_store() -> DiskContentStore:
    return DiskContentStore()


async def get_logged_user(x_user_id: Optional[str] = Header(None)) -> str:
    """Identity of the authenticated caller.

    Authentication happens upstream; the gateway in front of this service
    forwards the verified user id in ``X-User-Id``.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return x_user_id


def get_gateway(db: AsyncSession = Depends(get_db)) -> FileAssetGateway:
    return FileAssetGateway(db)


def get_lifecycle(
    gateway: FileAssetGateway = Depends(get_gateway),
    store: DiskContentStore = Depends(get_disk_store),
) -> FileLifecycleManager:
    return FileLifecycleManager(store, gateway)
