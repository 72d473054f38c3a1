"""Local file system access."""

from .local_files import LocalFileIO

__all__ = ["LocalFileIO"]
