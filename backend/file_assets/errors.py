"""Typed failures raised by the file asset core.

Every error carries the HTTP status the error handler maps it to and a
``details`` dict that is echoed back outside production.
"""
from typing import Any, Optional


class FileAssetError(Exception):
    """Base class for all failures surfaced by the file asset core."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class StorageWriteError(FileAssetError):
    """Disk save/replace/delete failed, or the name was rejected."""

    status_code = 500


class StorageNotFoundError(FileAssetError):
    """The addressed blob does not exist on disk."""

    status_code = 404


class RecordNotFound(FileAssetError):
    """A uuid does not resolve to a live FileAsset record."""

    status_code = 404


class RecordStoreError(FileAssetError):
    """The backing record store failed during a read or write."""

    status_code = 500


class UploadTooLarge(FileAssetError):
    status_code = 413


class UnknownFieldError(FileAssetError):
    """A caller tried to set a field the service does not accept."""

    status_code = 422


class InvalidFieldError(FileAssetError):
    """A caller-supplied field value failed validation."""

    status_code = 422
