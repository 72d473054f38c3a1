from __future__ import annotations

import base64
import logging
import threading
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from github_filestore.cancellation import raise_if_cancelled
from github_filestore.client.protocol import ClientProvider, ContentsApi
from github_filestore.config import RAW_CONTENT_BASE, CommitDefaults
from github_filestore.errors import (
    EmptyRepositoryError,
    FileStoreError,
    InvalidStateError,
    NotFoundError,
    OperationCancelledError,
    TransportError,
)
from github_filestore.messages import Clock, default_commit_message, utc_now
from github_filestore.schemas import (
    AuthorSpec,
    CommitResult,
    ContentEntry,
    ContentType,
    MemberOutcome,
    normalize_path,
    parse_commit_result,
)
from github_filestore.storage import LocalFileIO

logger = logging.getLogger(__name__)


class GitHubFileStore:
    """Path-addressed file operations on top of the GitHub contents API.

    The store keeps no state between calls. Overwrites and deletes re-read the
    current blob sha right before mutating, so two writers racing on the same
    path may see the later mutation rejected by GitHub (409/422), surfaced as
    TransportError.
    """

    def __init__(
        self,
        provider: ClientProvider,
        *,
        files: LocalFileIO | None = None,
        clock: Clock = utc_now,
        defaults: CommitDefaults | None = None,
        raw_base: str = RAW_CONTENT_BASE,
    ) -> None:
        self.provider = provider
        self.files = files or LocalFileIO()
        self.clock = clock
        self.defaults = defaults or CommitDefaults()
        self.raw_base = raw_base.rstrip("/")

    # Reads

    def get(
        self,
        owner: str,
        repo: str,
        path: str,
        *,
        ref: str | None = None,
        cancel: threading.Event | None = None,
    ) -> ContentEntry:
        path = normalize_path(path)
        client = self._acquire(cancel, operation="get", path=path)
        raise_if_cancelled(cancel, operation="get", path=path)
        payload = client.get_contents(owner, repo, path, ref=ref)
        if isinstance(payload, list):
            raise InvalidStateError(f"Path is a directory, not a file: {path}")
        if not payload:
            raise NotFoundError(f"File not found: {path}", path=path)
        return _to_entry(payload, operation="get", path=path)

    def get_metadata(
        self,
        owner: str,
        repo: str,
        path: str,
        *,
        ref: str | None = None,
        cancel: threading.Event | None = None,
    ) -> ContentEntry:
        return self.get(owner, repo, path, ref=ref, cancel=cancel).without_content()

    def read(
        self,
        owner: str,
        repo: str,
        path: str,
        *,
        ref: str | None = None,
        cancel: threading.Event | None = None,
    ) -> str:
        data = self.read_bytes(owner, repo, path, ref=ref, cancel=cancel)
        return data.decode("utf-8", errors="replace")

    def read_bytes(
        self,
        owner: str,
        repo: str,
        path: str,
        *,
        ref: str | None = None,
        cancel: threading.Event | None = None,
    ) -> bytes:
        entry = self.get(owner, repo, path, ref=ref, cancel=cancel)
        if entry.content is None:
            raise NotFoundError(f"File not found: {entry.path}", path=entry.path)
        if (entry.encoding or "").lower() == "none":
            # Files over 1 MB come back with an empty body and encoding "none".
            logger.warning("content not inlined path=%s size=%s", entry.path, entry.size)
            raise NotFoundError(
                f"File content not available through the contents API: {entry.path}",
                path=entry.path,
            )
        try:
            return entry.decoded_bytes()
        except ValueError as exc:
            raise TransportError(f"read {entry.path}: {exc}") from exc

    def read_to_file(
        self,
        owner: str,
        repo: str,
        path: str,
        file_path: str | Path,
        *,
        ref: str | None = None,
        cancel: threading.Event | None = None,
    ) -> None:
        data = self.read_bytes(owner, repo, path, ref=ref, cancel=cancel)
        self.files.write(file_path, data, cancel)

    def list(
        self,
        owner: str,
        repo: str,
        path: str = "",
        *,
        ref: str | None = None,
        cancel: threading.Event | None = None,
    ) -> list[ContentEntry]:
        path = normalize_path(path)
        client = self._acquire(cancel, operation="list", path=path)
        raise_if_cancelled(cancel, operation="list", path=path)
        payload = client.get_contents(owner, repo, path, ref=ref)
        if not isinstance(payload, list):
            raise InvalidStateError(f"Path is not a directory: {path}")
        return [_to_entry(item, operation="list", path=path) for item in payload]

    def exists(
        self,
        owner: str,
        repo: str,
        path: str,
        *,
        ref: str | None = None,
        cancel: threading.Event | None = None,
    ) -> bool:
        # Any failure, transport errors included, reads as "absent".
        try:
            self.get(owner, repo, path, ref=ref, cancel=cancel)
        except OperationCancelledError:
            raise
        except Exception as exc:
            logger.debug("exists false owner=%s repo=%s path=%s reason=%s", owner, repo, path, exc)
            return False
        return True

    def get_raw_download_url(
        self, owner: str, repo: str, path: str, branch: str | None = None
    ) -> str:
        branch = branch or self.defaults.branch
        return f"{self.raw_base}/{owner}/{repo}/{branch}/{normalize_path(path)}"

    # Writes

    def write(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        *,
        message: str | None = None,
        branch: str | None = None,
        author_name: str | None = None,
        author_email: str | None = None,
        cancel: threading.Event | None = None,
    ) -> CommitResult | None:
        return self.write_bytes(
            owner,
            repo,
            path,
            content.encode("utf-8"),
            message=message,
            branch=branch,
            author_name=author_name,
            author_email=author_email,
            cancel=cancel,
        )

    def write_from_file(
        self,
        owner: str,
        repo: str,
        path: str,
        file_path: str | Path,
        *,
        message: str | None = None,
        branch: str | None = None,
        author_name: str | None = None,
        author_email: str | None = None,
        cancel: threading.Event | None = None,
    ) -> CommitResult | None:
        data = self.files.read_bytes(file_path, cancel)
        return self.write_bytes(
            owner,
            repo,
            path,
            data,
            message=message,
            branch=branch,
            author_name=author_name,
            author_email=author_email,
            cancel=cancel,
        )

    def write_bytes(
        self,
        owner: str,
        repo: str,
        path: str,
        data: bytes,
        *,
        message: str | None = None,
        branch: str | None = None,
        author_name: str | None = None,
        author_email: str | None = None,
        cancel: threading.Event | None = None,
    ) -> CommitResult | None:
        return self._put(
            owner,
            repo,
            path,
            data,
            operation="Write",
            message=message,
            branch=branch,
            author=self._author(author_name, author_email),
            cancel=cancel,
        )

    def delete(
        self,
        owner: str,
        repo: str,
        path: str,
        *,
        message: str | None = None,
        branch: str | None = None,
        author_name: str | None = None,
        author_email: str | None = None,
        cancel: threading.Event | None = None,
    ) -> CommitResult | None:
        return self._delete(
            owner,
            repo,
            path,
            operation="Delete",
            message=message,
            branch=branch,
            author=self._author(author_name, author_email),
            cancel=cancel,
        )

    def copy(
        self,
        owner: str,
        repo: str,
        source_path: str,
        dest_path: str,
        *,
        message: str | None = None,
        branch: str | None = None,
        author_name: str | None = None,
        author_email: str | None = None,
        cancel: threading.Event | None = None,
    ) -> CommitResult | None:
        return self._copy(
            owner,
            repo,
            source_path,
            dest_path,
            operation="Copy",
            message=message,
            branch=branch,
            author=self._author(author_name, author_email),
            cancel=cancel,
        )

    def move(
        self,
        owner: str,
        repo: str,
        source_path: str,
        dest_path: str,
        *,
        message: str | None = None,
        branch: str | None = None,
        author_name: str | None = None,
        author_email: str | None = None,
        cancel: threading.Event | None = None,
    ) -> CommitResult | None:
        """Copy then delete the source.

        A failed delete propagates, leaving both paths populated; nothing is
        rolled back.
        """
        if normalize_path(source_path) == normalize_path(dest_path):
            raise InvalidStateError(
                f"Source and destination are the same: {normalize_path(source_path)}"
            )
        author = self._author(author_name, author_email)
        result = self._copy(
            owner,
            repo,
            source_path,
            dest_path,
            operation="Move",
            message=message,
            branch=branch,
            author=author,
            cancel=cancel,
        )
        try:
            self._delete(
                owner,
                repo,
                source_path,
                operation="Move",
                message=message,
                branch=branch,
                author=author,
                cancel=cancel,
            )
        except Exception:
            logger.error(
                "move incomplete: copied to %s but failed to delete source %s "
                "owner=%s repo=%s",
                normalize_path(dest_path),
                normalize_path(source_path),
                owner,
                repo,
            )
            raise
        return result

    # Batches

    def write_directory(
        self,
        owner: str,
        repo: str,
        dest_root: str,
        local_dir: str | Path,
        *,
        message: str | None = None,
        branch: str | None = None,
        author_name: str | None = None,
        author_email: str | None = None,
        cancel: threading.Event | None = None,
        outcomes: list[MemberOutcome] | None = None,
    ) -> list[CommitResult]:
        root = normalize_path(dest_root).strip("/")
        author = self._author(author_name, author_email)
        members = list(self.files.iter_files(local_dir))
        logger.info(
            "write_directory owner=%s repo=%s dest_root=%s local_dir=%s files=%s",
            owner,
            repo,
            root,
            local_dir,
            len(members),
        )

        results: list[CommitResult] = []
        for file_path, relative_path in members:
            target = f"{root}/{relative_path}" if root else relative_path
            try:
                data = self.files.read_bytes(file_path, cancel)
                result = self._put(
                    owner,
                    repo,
                    target,
                    data,
                    operation="Write",
                    message=message,
                    branch=branch,
                    author=author,
                    cancel=cancel,
                )
            except FileStoreError as exc:
                logger.exception("write_directory failed to write path=%s", target)
                _record(outcomes, MemberOutcome(path=target, succeeded=False, reason=str(exc)))
                continue

            if result is not None:
                results.append(result)
            _record(outcomes, MemberOutcome(path=target, succeeded=True, result=result))
        return results

    def delete_directory(
        self,
        owner: str,
        repo: str,
        path: str,
        *,
        message: str | None = None,
        branch: str | None = None,
        author_name: str | None = None,
        author_email: str | None = None,
        cancel: threading.Event | None = None,
        outcomes: list[MemberOutcome] | None = None,
    ) -> list[CommitResult]:
        path = normalize_path(path).strip("/")
        branch = branch or self.defaults.branch
        author = self._author(author_name, author_email)
        members = self._collect_files(owner, repo, path, ref=branch, cancel=cancel, outcomes=outcomes)
        logger.info(
            "delete_directory owner=%s repo=%s path=%s files=%s",
            owner,
            repo,
            path or "/",
            len(members),
        )

        results: list[CommitResult] = []
        for member in members:
            try:
                result = self._delete(
                    owner,
                    repo,
                    member,
                    operation="Delete",
                    message=message,
                    branch=branch,
                    author=author,
                    cancel=cancel,
                )
            except FileStoreError as exc:
                logger.exception("delete_directory failed to delete path=%s", member)
                _record(outcomes, MemberOutcome(path=member, succeeded=False, reason=str(exc)))
                continue

            if result is not None:
                results.append(result)
            _record(outcomes, MemberOutcome(path=member, succeeded=True, result=result))
        return results

    def delete_repository_contents(
        self,
        owner: str,
        repo: str,
        *,
        message: str | None = None,
        branch: str | None = None,
        author_name: str | None = None,
        author_email: str | None = None,
        cancel: threading.Event | None = None,
        outcomes: list[MemberOutcome] | None = None,
    ) -> list[CommitResult]:
        try:
            return self.delete_directory(
                owner,
                repo,
                "",
                message=message,
                branch=branch,
                author_name=author_name,
                author_email=author_email,
                cancel=cancel,
                outcomes=outcomes,
            )
        except EmptyRepositoryError:
            logger.info("delete_repository_contents skipped empty repository %s/%s", owner, repo)
            return []

    # Internals

    def _acquire(
        self, cancel: threading.Event | None, *, operation: str, path: str
    ) -> ContentsApi:
        raise_if_cancelled(cancel, operation=operation, path=path)
        return self.provider.acquire(cancel)

    def _put(
        self,
        owner: str,
        repo: str,
        path: str,
        data: bytes,
        *,
        operation: str,
        message: str | None,
        branch: str | None,
        author: dict[str, str] | None,
        cancel: threading.Event | None,
    ) -> CommitResult | None:
        path = normalize_path(path)
        branch = branch or self.defaults.branch
        client = self._acquire(cancel, operation=operation, path=path)
        sha = self._current_sha(client, owner, repo, path, branch=branch, cancel=cancel)

        body: dict[str, Any] = {
            "message": message or self._default_message(operation, path),
            "content": base64.b64encode(data).decode("ascii"),
            "branch": branch,
        }
        if sha:
            body["sha"] = sha
        if author:
            body["author"] = author

        raise_if_cancelled(cancel, operation=operation, path=path)
        logger.info(
            "%s owner=%s repo=%s path=%s branch=%s bytes=%s update=%s",
            operation.lower(),
            owner,
            repo,
            path,
            branch,
            len(data),
            sha is not None,
        )
        payload = client.put_contents(owner, repo, path, body)
        return _to_commit_result(payload, operation=operation, path=path)

    def _delete(
        self,
        owner: str,
        repo: str,
        path: str,
        *,
        operation: str,
        message: str | None,
        branch: str | None,
        author: dict[str, str] | None,
        cancel: threading.Event | None,
    ) -> CommitResult | None:
        path = normalize_path(path)
        branch = branch or self.defaults.branch
        existing = self.get(owner, repo, path, ref=branch, cancel=cancel)

        body: dict[str, Any] = {
            "message": message or self._default_message(operation, path),
            "sha": existing.sha,
            "branch": branch,
        }
        if author:
            body["author"] = author

        client = self._acquire(cancel, operation=operation, path=path)
        logger.info(
            "%s owner=%s repo=%s path=%s branch=%s",
            operation.lower(),
            owner,
            repo,
            path,
            branch,
        )
        payload = client.delete_contents(owner, repo, path, body)
        return _to_commit_result(payload, operation=operation, path=path)

    def _copy(
        self,
        owner: str,
        repo: str,
        source_path: str,
        dest_path: str,
        *,
        operation: str,
        message: str | None,
        branch: str | None,
        author: dict[str, str] | None,
        cancel: threading.Event | None,
    ) -> CommitResult | None:
        branch = branch or self.defaults.branch
        data = self.read_bytes(owner, repo, source_path, ref=branch, cancel=cancel)
        return self._put(
            owner,
            repo,
            dest_path,
            data,
            operation=operation,
            message=message,
            branch=branch,
            author=author,
            cancel=cancel,
        )

    def _current_sha(
        self,
        client: ContentsApi,
        owner: str,
        repo: str,
        path: str,
        *,
        branch: str,
        cancel: threading.Event | None,
    ) -> str | None:
        raise_if_cancelled(cancel, operation="lookup", path=path)
        try:
            payload = client.get_contents(owner, repo, path, ref=branch)
        except EmptyRepositoryError:
            logger.info("repository %s/%s is empty; creating %s without sha", owner, repo, path)
            return None
        except NotFoundError:
            return None

        if isinstance(payload, list):
            raise InvalidStateError(f"Path is a directory, cannot write a file: {path}")
        sha = payload.get("sha")
        return sha if isinstance(sha, str) and sha else None

    def _collect_files(
        self,
        owner: str,
        repo: str,
        path: str,
        *,
        ref: str,
        cancel: threading.Event | None,
        outcomes: list[MemberOutcome] | None,
    ) -> list[str]:
        members: list[str] = []
        for entry in self.list(owner, repo, path, ref=ref, cancel=cancel):
            if entry.is_dir:
                try:
                    members.extend(
                        self._collect_files(
                            owner, repo, entry.path, ref=ref, cancel=cancel, outcomes=outcomes
                        )
                    )
                except FileStoreError as exc:
                    logger.exception("failed to list directory path=%s", entry.path)
                    _record(
                        outcomes,
                        MemberOutcome(path=entry.path, succeeded=False, reason=str(exc)),
                    )
            elif entry.type == ContentType.SUBMODULE:
                logger.warning("skip submodule path=%s", entry.path)
            else:
                members.append(entry.path)
        return members

    def _author(self, name: str | None, email: str | None) -> dict[str, str] | None:
        if name is None and email is None:
            name, email = self.defaults.author_name, self.defaults.author_email
        if not name or not email:
            return None
        return AuthorSpec(name=name, email=email).model_dump()

    def _default_message(self, operation: str, path: str) -> str:
        return default_commit_message(
            operation,
            path,
            self.clock(),
            prefix=self.defaults.message_prefix,
        )


def _record(outcomes: list[MemberOutcome] | None, outcome: MemberOutcome) -> None:
    if outcomes is not None:
        outcomes.append(outcome)


def _to_entry(payload: Any, *, operation: str, path: str) -> ContentEntry:
    try:
        return ContentEntry.model_validate(payload)
    except ValidationError as exc:
        raise TransportError(f"{operation} {path}: malformed content entry") from exc


def _to_commit_result(payload: Any, *, operation: str, path: str) -> CommitResult | None:
    try:
        return parse_commit_result(payload)
    except ValidationError as exc:
        raise TransportError(f"{operation} {path}: malformed commit response") from exc
