from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

DEFAULT_MESSAGE_PREFIX = "[File Store Update]"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def default_commit_message(
    operation: str,
    path: str,
    now: datetime,
    *,
    prefix: str = DEFAULT_MESSAGE_PREFIX,
) -> str:
    if now.tzinfo is not None and now.tzinfo.utcoffset(now) is not None:
        now = now.astimezone(UTC)
    return f"{prefix} {operation} {path} at {now:%Y-%m-%d %H:%M:%S} UTC"
