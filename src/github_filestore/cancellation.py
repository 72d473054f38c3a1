from __future__ import annotations

import threading

from .errors import OperationCancelledError


def raise_if_cancelled(cancel: threading.Event | None, *, operation: str, path: str) -> None:
    if cancel is not None and cancel.is_set():
        raise OperationCancelledError(f"{operation} cancelled: {path}")
