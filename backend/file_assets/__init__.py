"""File asset service: blob content on disk, metadata in a record store."""

__version__ = "1.0.0"
