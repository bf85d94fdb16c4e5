"""Disk content store. Blobs live flat under one managed storage root."""
import logging
import mimetypes
import uuid
from pathlib import Path
from typing import Optional, Union

import aiofiles
import aiofiles.os

from file_assets.config import settings
from file_assets.errors import StorageNotFoundError, StorageWriteError

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".tmp"


class DiskContentStore:
    """Writes, replaces and deletes blob content on the local filesystem.

    Every write goes to a hidden temp sibling first and is renamed into place,
    so a reader sees either the previous bytes or the new bytes, never a mix.
    Names are generated once per save from a random token; replace and delete
    address existing names directly.
    """

    def __init__(
        self,
        base_path: Union[str, Path, None] = None,
        public_prefix: Optional[str] = None,
    ):
        self.base_path = Path(base_path or settings.FILE_STORAGE_PATH).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        prefix = settings.FILE_PUBLIC_PREFIX if public_prefix is None else public_prefix
        self.public_prefix = prefix.rstrip("/")

    async def save(
        self, content: bytes, original_name: Optional[str], mime_type: Optional[str]
    ) -> tuple[str, str]:
        """Store new content. Returns ``(file_name, file_path)``."""
        file_name = f"{uuid.uuid4().hex}{self.extension_for(original_name, mime_type)}"
        target = self._resolve(file_name)
        await self._write_atomic(target, content)
        logger.info(f"Saved blob {file_name} ({len(content)} bytes)")
        return file_name, self.public_path(file_name)

    async def replace(self, existing_file_name: str, new_content: bytes, mime_type: Optional[str] = None) -> None:
        """Overwrite an existing blob in place, keeping its name."""
        target = self._resolve(existing_file_name)
        if not await aiofiles.os.path.isfile(target):
            raise StorageWriteError(
                f"Cannot replace missing file {existing_file_name}",
                {"fileName": existing_file_name},
            )
        await self._write_atomic(target, new_content)
        logger.info(f"Replaced blob {existing_file_name} ({len(new_content)} bytes, {mime_type})")

    async def delete(self, file_name: str) -> None:
        """Remove a blob from storage."""
        target = self._resolve(file_name)
        try:
            await aiofiles.os.remove(target)
        except FileNotFoundError:
            raise StorageNotFoundError(f"File {file_name} not found", {"fileName": file_name})
        except OSError as e:
            logger.warning(f"Failed to delete blob {file_name}: {e}")
            raise StorageWriteError(f"Failed to delete file {file_name}", {"fileName": file_name}) from e
        logger.info(f"Deleted blob {file_name}")

    async def read(self, file_name: str) -> bytes:
        """Read blob bytes."""
        target = self._resolve(file_name)
        try:
            async with aiofiles.open(target, "rb") as f:
                return await f.read()
        except FileNotFoundError:
            raise StorageNotFoundError(f"File {file_name} not found", {"fileName": file_name})
        except OSError as e:
            raise StorageWriteError(f"Failed to read file {file_name}", {"fileName": file_name}) from e

    async def exists(self, file_name: str) -> bool:
        return await aiofiles.os.path.isfile(self._resolve(file_name))

    async def list_names(self) -> list[str]:
        """Names of all committed blobs (temp files excluded)."""
        names = await aiofiles.os.listdir(self.base_path)
        return sorted(n for n in names if not n.startswith(".") and (self.base_path / n).is_file())

    async def age_seconds(self, file_name: str, now: float) -> float:
        return now - await aiofiles.os.path.getmtime(self._resolve(file_name))

    async def list_temp_names(self) -> list[str]:
        """Temp files left by writes that never reached the rename."""
        names = await aiofiles.os.listdir(self.base_path)
        return sorted(n for n in names if n.startswith(".") and n.endswith(TEMP_SUFFIX))

    async def remove_stale_temp(self, temp_name: str, min_age_seconds: float, now: float) -> bool:
        """Remove a temp file older than ``min_age_seconds``. Returns True if removed."""
        if not (temp_name.startswith(".") and temp_name.endswith(TEMP_SUFFIX)) or temp_name != Path(temp_name).name:
            raise StorageWriteError(f"Invalid temp file name: {temp_name!r}", {"fileName": temp_name})
        target = self.base_path / temp_name
        try:
            if now - await aiofiles.os.path.getmtime(target) < min_age_seconds:
                return False
            await aiofiles.os.remove(target)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageWriteError(f"Failed to delete temp file {temp_name}", {"fileName": temp_name}) from e
        logger.info(f"Removed stale temp file {temp_name}")
        return True

    async def ping(self) -> None:
        """Check the storage root is writable. Raises StorageWriteError."""
        probe = self.base_path / f".health-{uuid.uuid4().hex}{TEMP_SUFFIX}"
        try:
            async with aiofiles.open(probe, "wb") as f:
                await f.write(b"ok")
            await aiofiles.os.remove(probe)
        except OSError as e:
            raise StorageWriteError(f"Storage root {self.base_path} is not writable") from e

    def public_path(self, file_name: str) -> str:
        return f"{self.public_prefix}/{file_name}"

    @staticmethod
    def extension_for(original_name: Optional[str], mime_type: Optional[str]) -> str:
        """Keep the original extension, or map one from the mime type."""
        if original_name:
            ext = Path(original_name).suffix.lower()
            if ext and ext[1:].isalnum():
                return ext
        if mime_type:
            return mimetypes.guess_extension(mime_type.split(";", 1)[0].strip()) or ""
        return ""

    def _resolve(self, file_name: str) -> Path:
        """Map a bare file name onto the storage root, rejecting traversal."""
        if (
            not file_name
            or file_name != Path(file_name).name
            or file_name.startswith(".")
            or "\\" in file_name
        ):
            raise StorageWriteError(f"Invalid file name: {file_name!r}", {"fileName": file_name})
        target = (self.base_path / file_name).resolve()
        if target.parent != self.base_path:
            raise StorageWriteError(f"Invalid file name: {file_name!r}", {"fileName": file_name})
        return target

    async def _write_atomic(self, target: Path, content: bytes) -> None:
        tmp = target.with_name(f".{target.name}.{uuid.uuid4().hex}{TEMP_SUFFIX}")
        try:
            async with aiofiles.open(tmp, "wb") as f:
                await f.write(content)
                await f.flush()
            await aiofiles.os.replace(tmp, target)
        except OSError as e:
            logger.warning(f"Failed to write blob {target.name}: {e}")
            try:
                await aiofiles.os.remove(tmp)
            except OSError:
                logger.debug(f"No temp file to clean up for {target.name}")
            raise StorageWriteError(f"Failed to write file {target.name}", {"fileName": target.name}) from e
