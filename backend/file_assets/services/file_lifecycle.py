"""File lifecycle manager.

Keeps blob content on disk and FileAsset records in the record store
consistent across create, update and delete. The two stores share no
transaction, so each operation runs a fixed-order sequence:

    create:  disk save    -> record create
    update:  record load  -> disk replace -> record update
    delete:  record load  -> disk delete  -> record delete

Any step failure aborts the rest of the sequence and propagates as a typed
FileAssetError. Nothing is retried and completed disk writes are not rolled
back: a record failure after a disk write leaves an orphan blob, which the
reconciliation sweep (services/reconciliation.py) removes later. A failed
disk delete leaves the record untouched; a blob that is already missing
does not block removal of its record.
"""
import base64
import logging
import uuid as uuid_lib
from dataclasses import dataclass
from typing import Any, Optional

from file_assets.errors import FileAssetError, RecordNotFound, StorageNotFoundError, UnknownFieldError
from file_assets.models.file_asset import FileAsset
from file_assets.services.disk_store import DiskContentStore
from file_assets.services.record_gateway import FileAssetGateway

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class FieldPolicy:
    """Merge rule for one caller-supplied field.

    Supplied values always overwrite. ``create_default`` is applied on create
    when the caller leaves the field out.
    """
    column: str
    create_default: Optional[str] = None


FIELD_POLICIES: dict[str, FieldPolicy] = {
    "tags": FieldPolicy("tags"),
    "user_ref": FieldPolicy("user_ref"),
    "views": FieldPolicy("views", create_default="0"),
}


def build_data_uri(content: bytes, mime_type: Optional[str]) -> str:
    """Encode content as ``data:<mime>;base64,<payload>``."""
    payload = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type or DEFAULT_MIME_TYPE};base64,{payload}"


def merge_fields(fields: Optional[dict[str, Any]], creating: bool) -> dict[str, Any]:
    """Apply FIELD_POLICIES to caller fields. Returns record column values."""
    fields = {k: v for k, v in (fields or {}).items() if v is not None}
    unknown = sorted(set(fields) - set(FIELD_POLICIES))
    if unknown:
        raise UnknownFieldError(f"Unsupported fields: {', '.join(unknown)}", {"fields": unknown})

    merged = {}
    for name, policy in FIELD_POLICIES.items():
        if name in fields:
            merged[policy.column] = fields[name]
        elif creating and policy.create_default is not None:
            merged[policy.column] = policy.create_default
    return merged


class FileLifecycleManager:
    """Orchestrates the disk store and the record gateway for FileAssets."""

    collection_name = "Files"

    def __init__(self, store: DiskContentStore, gateway: FileAssetGateway):
        self.store = store
        self.gateway = gateway

    async def get(self, uuid: str) -> FileAsset:
        record = await self.gateway.get_by_uuid(uuid)
        if record is None:
            raise RecordNotFound("File not found", {"uuid": uuid})
        return record

    async def get_by_user(self, user_id: str) -> list[FileAsset]:
        """All FileAssets owned by ``user_id``. Record store only."""
        logger.info(f"[{self.collection_name}] Fetching by userId {user_id}")
        return await self.gateway.list_by_owner(user_id)

    async def read_content(self, uuid: str) -> tuple[FileAsset, bytes]:
        record = await self.get(uuid)
        return record, await self.store.read(record.file_name)

    async def create(
        self,
        content: bytes,
        mime_type: Optional[str],
        user_id: str,
        original_name: Optional[str] = None,
        fields: Optional[dict[str, Any]] = None,
    ) -> FileAsset:
        """Store new content, then create the record that references it.

        ``user_id`` comes from the authenticated caller, never from ``fields``.
        """
        values = merge_fields(fields, creating=True)

        file_name, file_path = await self.store.save(content, original_name, mime_type)
        logger.info(
            f"[{self.collection_name}] Creating new file {file_name} for user {user_id}"
        )
        record_fields = {
            **values,
            "uuid": str(uuid_lib.uuid4()),
            "file_name": file_name,
            "file_path": file_path,
            "file_text": build_data_uri(content, mime_type),
            "user_id": user_id,
        }
        try:
            return await self.gateway.create(record_fields)
        except FileAssetError:
            logger.error(
                f"[{self.collection_name}] Record create failed, orphan blob left: {file_name}"
            )
            raise

    async def update(
        self,
        uuid: str,
        content: bytes,
        mime_type: Optional[str],
        fields: Optional[dict[str, Any]] = None,
    ) -> FileAsset:
        """Replace content in place, then update the record.

        ``uuid``, ``file_name`` and ``file_path`` never change.
        """
        values = merge_fields(fields, creating=False)
        existing = await self.get(uuid)

        await self.store.replace(existing.file_name, content, mime_type)
        values["file_text"] = build_data_uri(content, mime_type)
        try:
            updated = await self.gateway.update(uuid, values)
        except FileAssetError:
            logger.error(
                f"[{self.collection_name}] Record update failed after disk replace: "
                f"{existing.file_name} is ahead of record {uuid}"
            )
            raise
        logger.info(f"[{self.collection_name}] Updated {uuid} ({existing.file_name})")
        return updated

    async def delete(self, uuid: str) -> FileAsset:
        """Delete the blob, then the record. Returns the deleted snapshot."""
        existing = await self.get(uuid)

        try:
            await self.store.delete(existing.file_name)
        except StorageNotFoundError:
            # Blob already gone; removing the record restores consistency
            logger.warning(
                f"[{self.collection_name}] Blob {existing.file_name} already absent, deleting record {uuid}"
            )
        try:
            deleted = await self.gateway.delete(uuid)
        except FileAssetError:
            logger.error(
                f"[{self.collection_name}] Record delete failed after blob removal: {uuid}"
            )
            raise
        logger.info(f"[{self.collection_name}] Deleted {uuid} ({existing.file_name})")
        return deleted
