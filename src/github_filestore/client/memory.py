from __future__ import annotations

import base64
import hashlib
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from github_filestore.errors import (
    EmptyRepositoryError,
    FileStoreError,
    NotFoundError,
    TransportError,
)
from github_filestore.schemas import normalize_path


def git_blob_sha(data: bytes) -> str:
    header = f"blob {len(data)}\0".encode()
    return hashlib.sha1(header + data).hexdigest()


@dataclass(slots=True)
class RecordedCall:
    method: str
    owner: str
    repo: str
    path: str
    body: dict[str, Any] | None = None
    ref: str | None = None


@dataclass(slots=True)
class _Repository:
    files: dict[str, bytes] = field(default_factory=dict)
    commit_count: int = 0


FailureHook = Callable[[RecordedCall], FileStoreError | None]


class InMemoryContentsApi:
    """Dict-backed stand-in for the contents endpoints.

    Branches are not modelled: every ref sees the same tree. Tokens are
    enforced the way GitHub does (422 without sha on overwrite, 409 on a
    stale sha).
    """

    def __init__(self, *, empty_repositories: set[str] | None = None) -> None:
        self._repos: dict[str, _Repository] = {}
        self._empty = set(empty_repositories or ())
        self.calls: list[RecordedCall] = []
        self.failure_hooks: list[FailureHook] = []

    def seed(self, owner: str, repo: str, files: dict[str, bytes | str]) -> None:
        repository = self._repo(owner, repo)
        for path, data in files.items():
            if isinstance(data, str):
                data = data.encode("utf-8")
            repository.files[normalize_path(path)] = data
        self._empty.discard(f"{owner}/{repo}")

    def file_bytes(self, owner: str, repo: str, path: str) -> bytes | None:
        return self._repo(owner, repo).files.get(normalize_path(path))

    def fail_when(self, hook: FailureHook) -> None:
        self.failure_hooks.append(hook)

    def get_contents(
        self, owner: str, repo: str, path: str, *, ref: str | None = None
    ) -> dict[str, Any] | list[Any]:
        call = self._record("GET", owner, repo, path, ref=ref)
        self._raise_injected(call)
        self._raise_if_empty(owner, repo, path)

        key = path.strip("/")
        files = self._repo(owner, repo).files
        if key in files:
            return self._file_payload(owner, repo, key, files[key], with_content=True)

        children = self._children(files, key)
        if not children:
            raise NotFoundError(f"File not found: {path}", path=path)
        return [
            self._file_payload(owner, repo, child, files[child], with_content=False)
            if kind == "file"
            else self._dir_payload(owner, repo, child)
            for child, kind in children
        ]

    def put_contents(
        self, owner: str, repo: str, path: str, body: dict[str, Any]
    ) -> dict[str, Any] | None:
        call = self._record("PUT", owner, repo, path, body=body)
        self._raise_injected(call)

        repository = self._repo(owner, repo)
        key = path.strip("/")
        existing = repository.files.get(key)
        supplied_sha = body.get("sha")
        if existing is not None:
            if not supplied_sha:
                raise TransportError(
                    f"PUT {owner}/{repo}/{path} failed with status 422: sha wasn't supplied",
                    status_code=422,
                )
            if supplied_sha != git_blob_sha(existing):
                raise TransportError(
                    f"PUT {owner}/{repo}/{path} failed with status 409: sha does not match",
                    status_code=409,
                )

        data = base64.b64decode(body["content"])
        repository.files[key] = data
        self._empty.discard(f"{owner}/{repo}")
        return {
            "content": self._file_payload(owner, repo, key, data, with_content=False),
            "commit": self._commit_payload(repository, body),
        }

    def delete_contents(
        self, owner: str, repo: str, path: str, body: dict[str, Any]
    ) -> dict[str, Any] | None:
        call = self._record("DELETE", owner, repo, path, body=body)
        self._raise_injected(call)

        repository = self._repo(owner, repo)
        key = path.strip("/")
        existing = repository.files.get(key)
        if existing is None:
            raise NotFoundError(f"File not found: {path}", path=path)
        if body.get("sha") != git_blob_sha(existing):
            raise TransportError(
                f"DELETE {owner}/{repo}/{path} failed with status 409: sha does not match",
                status_code=409,
            )

        del repository.files[key]
        return {"content": None, "commit": self._commit_payload(repository, body)}

    def _repo(self, owner: str, repo: str) -> _Repository:
        return self._repos.setdefault(f"{owner}/{repo}", _Repository())

    def _record(
        self,
        method: str,
        owner: str,
        repo: str,
        path: str,
        *,
        body: dict[str, Any] | None = None,
        ref: str | None = None,
    ) -> RecordedCall:
        call = RecordedCall(method=method, owner=owner, repo=repo, path=path, body=body, ref=ref)
        self.calls.append(call)
        return call

    def _raise_injected(self, call: RecordedCall) -> None:
        for hook in self.failure_hooks:
            error = hook(call)
            if error is not None:
                raise error

    def _raise_if_empty(self, owner: str, repo: str, path: str) -> None:
        if f"{owner}/{repo}" in self._empty:
            raise EmptyRepositoryError(f"Repository is empty: {owner}/{repo}", path=path)

    @staticmethod
    def _children(files: dict[str, bytes], directory: str) -> list[tuple[str, str]]:
        prefix = f"{directory}/" if directory else ""
        children: dict[str, str] = {}
        for file_path in files:
            if not file_path.startswith(prefix):
                continue
            head, sep, _ = file_path[len(prefix) :].partition("/")
            child = f"{prefix}{head}"
            children[child] = "dir" if sep else "file"
        return sorted(children.items())

    @staticmethod
    def _file_payload(
        owner: str, repo: str, path: str, data: bytes, *, with_content: bool
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": path.rsplit("/", 1)[-1],
            "path": path,
            "sha": git_blob_sha(data),
            "size": len(data),
            "type": "file",
            "url": f"memory://{owner}/{repo}/contents/{path}",
            "download_url": f"memory://{owner}/{repo}/raw/{path}",
        }
        if with_content:
            payload["content"] = base64.encodebytes(data).decode("ascii")
            payload["encoding"] = "base64"
        return payload

    @staticmethod
    def _dir_payload(owner: str, repo: str, path: str) -> dict[str, Any]:
        return {
            "name": path.rsplit("/", 1)[-1],
            "path": path,
            "sha": hashlib.sha1(path.encode("utf-8")).hexdigest(),
            "size": 0,
            "type": "dir",
            "url": f"memory://{owner}/{repo}/contents/{path}",
        }

    @staticmethod
    def _commit_payload(repository: _Repository, body: dict[str, Any]) -> dict[str, Any]:
        repository.commit_count += 1
        message = str(body.get("message", ""))
        author = body.get("author")
        return {
            "sha": hashlib.sha1(f"{repository.commit_count}:{message}".encode()).hexdigest(),
            "message": message,
            "author": author if isinstance(author, dict) else None,
        }
