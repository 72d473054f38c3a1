from __future__ import annotations


class FileStoreError(Exception):
    """Base class for failures raised by the file store."""


class NotFoundError(FileStoreError, FileNotFoundError):
    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class EmptyRepositoryError(NotFoundError):
    """The repository exists but has no commits yet."""


class InvalidStateError(FileStoreError):
    """A path resolved to a file where a directory was expected, or vice versa."""


class TransportError(FileStoreError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LocalIoError(FileStoreError):
    pass


class OperationCancelledError(Exception):
    """Raised when the caller's cancellation event is set between steps."""
