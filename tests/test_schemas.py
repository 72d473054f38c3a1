from __future__ import annotations

import base64
from datetime import UTC, datetime, timedelta, timezone

import pytest

from github_filestore.messages import default_commit_message
from github_filestore.schemas import (
    ContentEntry,
    ContentType,
    normalize_path,
    parse_commit_result,
)


def test_normalize_path_strips_one_leading_slash() -> None:
    assert normalize_path("/a/b") == normalize_path("a/b") == "a/b"
    assert normalize_path("//a") == "/a"
    assert normalize_path("") == ""
    assert normalize_path("a/../b") == "a/../b"


def test_content_entry_ignores_unknown_fields() -> None:
    entry = ContentEntry.model_validate(
        {
            "name": "b.txt",
            "path": "a/b.txt",
            "sha": "abc",
            "size": 3,
            "type": "file",
            "git_url": "https://api.github.com/repos/o/r/git/blobs/abc",
            "_links": {"self": "..."},
        }
    )

    assert entry.type == ContentType.FILE
    assert entry.content is None


def test_decoded_bytes_handles_wrapped_base64() -> None:
    data = bytes(range(200))
    wrapped = base64.encodebytes(data).decode("ascii")
    assert "\n" in wrapped

    entry = ContentEntry(name="x", path="x", sha="1", content=wrapped, encoding="BASE64")

    assert entry.is_base64
    assert entry.decoded_bytes() == data


def test_decoded_bytes_without_base64_uses_text() -> None:
    entry = ContentEntry(name="x", path="x", sha="1", content="plain ✓", encoding="utf-8")

    assert not entry.is_base64
    assert entry.decoded_bytes() == "plain ✓".encode()


def test_decoded_bytes_rejects_invalid_base64() -> None:
    entry = ContentEntry(name="x", path="x", sha="1", content="abc", encoding="base64")

    with pytest.raises(ValueError):
        entry.decoded_bytes()


def test_parse_commit_result_absent_commit_is_none() -> None:
    assert parse_commit_result(None) is None
    assert parse_commit_result({}) is None
    assert parse_commit_result({"content": None, "commit": None}) is None

    result = parse_commit_result(
        {
            "content": {"name": "a", "path": "a", "sha": "blob"},
            "commit": {"sha": "c0ffee", "message": "m", "tree": {"sha": "t"}},
        }
    )
    assert result is not None
    assert result.commit_sha == "c0ffee"
    assert result.content is not None and result.content.sha == "blob"


def test_default_commit_message_uses_utc() -> None:
    seoul = timezone(timedelta(hours=9))
    now = datetime(2026, 3, 1, 21, 0, 5, tzinfo=seoul)

    assert (
        default_commit_message("Write", "a/b.txt", now)
        == "[File Store Update] Write a/b.txt at 2026-03-01 12:00:05 UTC"
    )
    assert default_commit_message(
        "Delete", "x", datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC), prefix="[sync]"
    ) == "[sync] Delete x at 2026-01-02 03:04:05 UTC"
