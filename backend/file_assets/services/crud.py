"""Generic CRUD accessor over an AsyncSession, keyed by a ``uuid`` column.

Every SQLAlchemy failure is rolled back and re-raised as RecordStoreError so
callers deal with one error type for the backing store.
"""
import logging
from typing import Any, Generic, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from file_assets.errors import RecordNotFound, RecordStoreError
from file_assets.models.base import Base

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class CrudRepository(Generic[ModelT]):
    def __init__(self, db: AsyncSession, model: type[ModelT], collection_name: str):
        self.db = db
        self.model = model
        self.collection_name = collection_name

    async def get_by_uuid(self, uuid: str) -> Optional[ModelT]:
        try:
            result = await self.db.execute(select(self.model).where(self.model.uuid == uuid))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._store_error("fetch", e, uuid=uuid)

    async def create(self, fields: dict[str, Any]) -> ModelT:
        try:
            instance = self.model(**fields)
            self.db.add(instance)
            await self.db.commit()
            await self.db.refresh(instance)
            return instance
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise self._store_error("create", e)

    async def update(self, uuid: str, fields: dict[str, Any]) -> ModelT:
        """Partial update. Only the supplied fields change."""
        instance = await self.get_by_uuid(uuid)
        if instance is None:
            raise RecordNotFound(f"{self.collection_name} {uuid} not found", {"uuid": uuid})
        try:
            for key, value in fields.items():
                setattr(instance, key, value)
            await self.db.commit()
            await self.db.refresh(instance)
            return instance
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise self._store_error("update", e, uuid=uuid)

    async def delete(self, uuid: str) -> ModelT:
        """Delete and return the deleted snapshot."""
        instance = await self.get_by_uuid(uuid)
        if instance is None:
            raise RecordNotFound(f"{self.collection_name} {uuid} not found", {"uuid": uuid})
        try:
            await self.db.delete(instance)
            await self.db.commit()
            return instance
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise self._store_error("delete", e, uuid=uuid)

    async def list_by(self, **filters: Any) -> list[ModelT]:
        query = select(self.model)
        for column, value in filters.items():
            query = query.where(getattr(self.model, column) == value)
        try:
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise self._store_error("list", e)

    async def list_field(self, column: str) -> list[Any]:
        try:
            result = await self.db.execute(select(getattr(self.model, column)))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise self._store_error("list", e)

    def _store_error(self, action: str, error: SQLAlchemyError, **details: Any) -> RecordStoreError:
        logger.warning(f"[{self.collection_name}] Failed to {action}: {error}")
        return RecordStoreError(f"Failed to {action} {self.collection_name}", details)
