"""File-level operations on GitHub repositories via the contents API."""

from .config import AppConfig, load_config
from .errors import (
    EmptyRepositoryError,
    FileStoreError,
    InvalidStateError,
    LocalIoError,
    NotFoundError,
    OperationCancelledError,
    TransportError,
)
from .schemas import CommitResult, ContentEntry, ContentType, MemberOutcome, normalize_path
from .store import GitHubFileStore

__all__ = [
    "AppConfig",
    "CommitResult",
    "ContentEntry",
    "ContentType",
    "EmptyRepositoryError",
    "FileStoreError",
    "GitHubFileStore",
    "InvalidStateError",
    "LocalIoError",
    "MemberOutcome",
    "NotFoundError",
    "OperationCancelledError",
    "TransportError",
    "load_config",
    "normalize_path",
]
