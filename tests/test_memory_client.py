from __future__ import annotations

import base64

import pytest

from github_filestore.client import InMemoryContentsApi, git_blob_sha
from github_filestore.errors import EmptyRepositoryError, NotFoundError, TransportError


def _put_body(data: bytes, sha: str | None = None) -> dict[str, object]:
    body: dict[str, object] = {
        "message": "m",
        "content": base64.b64encode(data).decode("ascii"),
        "branch": "main",
    }
    if sha is not None:
        body["sha"] = sha
    return body


def test_git_blob_sha_matches_git() -> None:
    # `printf 'hello\n' | git hash-object --stdin`
    assert git_blob_sha(b"hello\n") == "ce013625030ba8dba906f756967f9e9ca394464a"
    assert git_blob_sha(b"") == "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"


def test_overwrite_without_sha_is_rejected() -> None:
    api = InMemoryContentsApi()
    api.seed("o", "r", {"a.txt": "a"})

    with pytest.raises(TransportError) as excinfo:
        api.put_contents("o", "r", "a.txt", _put_body(b"b"))

    assert excinfo.value.status_code == 422


def test_overwrite_with_current_sha_succeeds() -> None:
    api = InMemoryContentsApi()
    api.seed("o", "r", {"a.txt": "a"})

    payload = api.put_contents("o", "r", "a.txt", _put_body(b"b", git_blob_sha(b"a")))

    assert payload is not None
    assert payload["content"]["sha"] == git_blob_sha(b"b")
    assert api.file_bytes("o", "r", "a.txt") == b"b"


def test_delete_with_stale_sha_conflicts() -> None:
    api = InMemoryContentsApi()
    api.seed("o", "r", {"a.txt": "a"})

    with pytest.raises(TransportError) as excinfo:
        api.delete_contents("o", "r", "a.txt", {"message": "m", "sha": "stale"})

    assert excinfo.value.status_code == 409
    assert api.file_bytes("o", "r", "a.txt") == b"a"


def test_empty_repository_until_first_write() -> None:
    api = InMemoryContentsApi(empty_repositories={"o/r"})

    with pytest.raises(EmptyRepositoryError):
        api.get_contents("o", "r", "")

    api.put_contents("o", "r", "README.md", _put_body(b"# r"))

    listing = api.get_contents("o", "r", "")
    assert isinstance(listing, list)
    assert [item["path"] for item in listing] == ["README.md"]


def test_missing_path_raises_not_found() -> None:
    with pytest.raises(NotFoundError):
        InMemoryContentsApi().get_contents("o", "r", "nothing")
