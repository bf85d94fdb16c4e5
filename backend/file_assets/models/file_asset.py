"""FileAsset model - blob metadata (actual bytes live on the filesystem)."""
from typing import Any, Optional
from sqlalchemy import String, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column
from file_assets.models.base import Base, TimestampMixin


class FileAsset(Base, TimestampMixin):
    __tablename__ = "files"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    uuid: Mapped[str] = mapped_column(String(36), unique=True, index=True, nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    file_path: Mapped[str] = mapped_column(String(1000), nullable=False)
    # data:<mime>;base64,<payload>, kept in sync with the blob
    file_text: Mapped[str] = mapped_column(Text, nullable=False)
    user_ref: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    user_id: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    tags: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    views: Mapped[str] = mapped_column(String(20), default="0")

    @property
    def mime_type(self) -> str:
        """Mime type embedded in the stored data URI."""
        header = self.file_text.split(",", 1)[0]
        return header[len("data:"):].split(";", 1)[0] or "application/octet-stream"
