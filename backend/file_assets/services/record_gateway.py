"""Metadata record gateway for FileAsset, delegating to the CRUD accessor.

Errors from the accessor (RecordNotFound, RecordStoreError) pass through
untranslated.
"""
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from file_assets.models.file_asset import FileAsset
from file_assets.services.crud import CrudRepository


class FileAssetGateway:
    def __init__(self, db: AsyncSession):
        self.repo = CrudRepository(db, FileAsset, "Files")

    async def get_by_uuid(self, uuid: str) -> Optional[FileAsset]:
        return await self.repo.get_by_uuid(uuid)

    async def create(self, fields: dict[str, Any]) -> FileAsset:
        return await self.repo.create(fields)

    async def update(self, uuid: str, fields: dict[str, Any]) -> FileAsset:
        return await self.repo.update(uuid, fields)

    async def delete(self, uuid: str) -> FileAsset:
        return await self.repo.delete(uuid)

    async def list_by_owner(self, user_id: str) -> list[FileAsset]:
        return await self.repo.list_by(user_id=user_id)

    async def list_file_names(self) -> set[str]:
        return set(await self.repo.list_field("file_name"))
