"""Files API routes."""
import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, File as FastAPIFile, Form, Query, UploadFile
from fastapi.responses import Response
from pydantic import ValidationError

from file_assets.config import settings
from file_assets.dependencies import (
    get_disk_store,
    get_gateway,
    get_lifecycle,
    get_logged_user,
)
from file_assets.errors import FileAssetError, InvalidFieldError, UploadTooLarge
from file_assets.models.file_asset import FileAsset
from file_assets.schemas.common import create_response
from file_assets.schemas.file_asset import FileAssetFields, FileAssetResponse, SweepReportResponse
from file_assets.services.disk_store import DiskContentStore
from file_assets.services.file_lifecycle import FileLifecycleManager
from file_assets.services.reconciliation import sweep_orphan_blobs
from file_assets.services.record_gateway import FileAssetGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["files"])


@router.get("/user/{user_id}")
async def get_by_user(
    user_id: str,
    logged_user: str = Depends(get_logged_user),
    lifecycle: FileLifecycleManager = Depends(get_lifecycle),
):
    """List a user's files."""
    try:
        records = await lifecycle.get_by_user(user_id)
    except FileAssetError as e:
        logger.warning(f"Error fetching files by userId {user_id}: {e.message} (user {logged_user})")
        raise
    return create_response([_to_response(r) for r in records])


@router.post("/upload", status_code=201)
async def upload_file(
    file: UploadFile = FastAPIFile(...),
    tags: Optional[str] = Form(None),
    views: Optional[str] = Form(None),
    user_ref: Optional[str] = Form(None, alias="userRef"),
    logged_user: str = Depends(get_logged_user),
    lifecycle: FileLifecycleManager = Depends(get_lifecycle),
):
    """Upload a file and create its record."""
    try:
        fields = _parse_fields(tags, views, user_ref)
        content = await _read_upload(file)
        created = await lifecycle.create(
            content,
            file.content_type,
            logged_user,
            original_name=file.filename,
            fields=fields.model_dump(exclude_none=True),
        )
    except FileAssetError as e:
        logger.warning(f"Error uploading file: {e.message} (user {logged_user})")
        raise
    return create_response(_to_response(created), status=201)


@router.get("/{uuid}")
async def get_file(
    uuid: str,
    logged_user: str = Depends(get_logged_user),
    lifecycle: FileLifecycleManager = Depends(get_lifecycle),
):
    """Get file metadata by uuid."""
    return create_response(_to_response(await lifecycle.get(uuid)))


@router.get("/{uuid}/content")
async def download_file(
    uuid: str,
    logged_user: str = Depends(get_logged_user),
    lifecycle: FileLifecycleManager = Depends(get_lifecycle),
):
    """Download the stored bytes of a file."""
    record, content = await lifecycle.read_content(uuid)
    return Response(
        content=content,
        media_type=record.mime_type,
        headers={"Content-Disposition": f'inline; filename="{record.file_name}"'},
    )


@router.put("/{uuid}")
async def update_file(
    uuid: str,
    file: UploadFile = FastAPIFile(...),
    tags: Optional[str] = Form(None),
    views: Optional[str] = Form(None),
    user_ref: Optional[str] = Form(None, alias="userRef"),
    logged_user: str = Depends(get_logged_user),
    lifecycle: FileLifecycleManager = Depends(get_lifecycle),
):
    """Replace a file's content. Only provided fields are updated."""
    try:
        fields = _parse_fields(tags, views, user_ref)
        content = await _read_upload(file)
        updated = await lifecycle.update(
            uuid, content, file.content_type, fields=fields.model_dump(exclude_none=True)
        )
    except FileAssetError as e:
        logger.warning(f"Error updating file {uuid}: {e.message} (user {logged_user})")
        raise
    return create_response(_to_response(updated))


@router.delete("/{uuid}")
async def delete_file(
    uuid: str,
    logged_user: str = Depends(get_logged_user),
    lifecycle: FileLifecycleManager = Depends(get_lifecycle),
):
    """Delete a file's content and its record."""
    try:
        deleted = await lifecycle.delete(uuid)
    except FileAssetError as e:
        logger.warning(f"Error deleting file {uuid}: {e.message} (user {logged_user})")
        raise
    return create_response(_to_response(deleted))


@router.post("/maintenance/sweep")
async def sweep_orphans(
    dry_run: bool = Query(False, alias="dryRun"),
    min_age_minutes: int = Query(settings.ORPHAN_MIN_AGE_MINUTES, alias="minAgeMinutes", ge=0),
    logged_user: str = Depends(get_logged_user),
    gateway: FileAssetGateway = Depends(get_gateway),
    store: DiskContentStore = Depends(get_disk_store),
):
    """Remove blobs that no file record references."""
    logger.info(f"Orphan sweep requested by {logged_user} (dry_run={dry_run})")
    report = await sweep_orphan_blobs(store, gateway, min_age_minutes, dry_run=dry_run)
    return create_response(
        SweepReportResponse(**asdict(report)).model_dump(by_alias=True)
    )


def _parse_fields(tags: Optional[str], views: Optional[str], user_ref: Optional[str]) -> FileAssetFields:
    try:
        return FileAssetFields(tags=tags, views=views, user_ref=user_ref)
    except ValidationError as e:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise InvalidFieldError("Invalid file fields", {"errors": errors})


async def _read_upload(file: UploadFile) -> bytes:
    content = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise UploadTooLarge(
            f"File exceeds {settings.MAX_UPLOAD_BYTES} bytes",
            {"limit": settings.MAX_UPLOAD_BYTES},
        )
    return content


def _to_response(record: FileAsset) -> dict:
    """Convert SQLAlchemy model to camelCase response dict."""
    return FileAssetResponse.model_validate(record).model_dump(by_alias=True, mode="json")
