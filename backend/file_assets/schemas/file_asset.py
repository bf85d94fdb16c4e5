"""FileAsset request/response schemas."""
import json
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import Field, field_validator

from file_assets.schemas.base import CamelModel, CamelORMModel


class FileAssetFields(CamelModel):
    """Caller-supplied optional attributes sent alongside uploaded content.

    Only these fields are recognised; ``uuid``, ``fileName``, ``filePath``,
    ``fileText`` and ``userId`` are owned by the service.
    """
    tags: Optional[Union[list[str], str]] = None
    views: Optional[str] = Field(None, max_length=20)
    user_ref: Optional[str] = Field(None, max_length=100)

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tag_list(cls, value: Any) -> Any:
        # Multipart forms carry lists as JSON text
        if isinstance(value, str) and value.strip().startswith("["):
            try:
                return json.loads(value)
            except ValueError:
                return value
        return value

    @field_validator("views", mode="before")
    @classmethod
    def views_as_text(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value


class FileAssetResponse(CamelORMModel):
    id: int
    uuid: str
    file_name: str
    file_path: str
    file_text: str
    user_ref: Optional[str] = None
    user_id: str
    tags: Optional[Union[list[str], str]] = None
    views: str = "0"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SweepReportResponse(CamelModel):
    scanned: int
    orphans: list[str]
    removed: list[str]
    temp_removed: list[str]
    dry_run: bool
