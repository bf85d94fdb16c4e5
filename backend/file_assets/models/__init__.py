"""Import all models so SQLAlchemy metadata knows about them."""
from file_assets.models.base import Base
from file_assets.models.file_asset import FileAsset

__all__ = ["Base", "FileAsset"]
