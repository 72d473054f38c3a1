from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from pathlib import Path

from github_filestore.cancellation import raise_if_cancelled
from github_filestore.errors import LocalIoError

logger = logging.getLogger(__name__)


class LocalFileIO:
    def read_bytes(self, path: str | Path, cancel: threading.Event | None = None) -> bytes:
        raise_if_cancelled(cancel, operation="read local file", path=str(path))
        try:
            return Path(path).read_bytes()
        except OSError as exc:
            raise LocalIoError(f"Failed to read local file: {path}: {exc}") from exc

    def write(
        self, path: str | Path, data: bytes, cancel: threading.Event | None = None
    ) -> None:
        raise_if_cancelled(cancel, operation="write local file", path=str(path))
        target = Path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise LocalIoError(f"Failed to write local file: {path}: {exc}") from exc
        logger.info("local_file write path=%s bytes=%s", target, len(data))

    def iter_files(self, directory: str | Path) -> Iterator[tuple[Path, str]]:
        root = Path(directory)
        if not root.is_dir():
            raise LocalIoError(f"Local directory not found: {directory}")
        for file_path in sorted(root.rglob("*")):
            if file_path.is_file():
                yield file_path, file_path.relative_to(root).as_posix()
