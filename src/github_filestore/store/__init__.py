"""File store facade."""

from .file_store import GitHubFileStore

__all__ = ["GitHubFileStore"]
