from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_path(path: str) -> str:
    """Strip a single leading slash; the remote decides what else is legal."""
    if path.startswith("/"):
        return path[1:]
    return path


class DTOBase(BaseModel):
    # Unknown remote fields are dropped.
    model_config = ConfigDict(extra="ignore")


class ContentType(StrEnum):
    FILE = "file"
    DIR = "dir"
    SYMLINK = "symlink"
    SUBMODULE = "submodule"


class ContentEntry(DTOBase):
    name: str
    path: str
    sha: str
    size: int | None = None
    type: ContentType = ContentType.FILE
    content: str | None = None
    encoding: str | None = None
    url: str | None = None
    download_url: str | None = None
    html_url: str | None = None

    @field_validator("path", mode="after")
    @classmethod
    def validate_path(cls, value: str) -> str:
        return normalize_path(value)

    @property
    def is_base64(self) -> bool:
        return (self.encoding or "").lower() == "base64"

    @property
    def is_dir(self) -> bool:
        return self.type == ContentType.DIR

    def decoded_bytes(self) -> bytes:
        if self.content is None:
            raise ValueError(f"entry has no content: {self.path}")
        if self.is_base64:
            try:
                # GitHub wraps base64 payloads at 60 columns.
                return base64.b64decode("".join(self.content.split()))
            except (binascii.Error, ValueError) as exc:
                raise ValueError(f"invalid base64 content: {self.path}") from exc
        return self.content.encode("utf-8")

    def without_content(self) -> ContentEntry:
        return self.model_copy(update={"content": None, "encoding": None})


class GitIdentity(DTOBase):
    name: str | None = None
    email: str | None = None
    date: str | None = None


class CommitInfo(DTOBase):
    sha: str
    message: str | None = None
    html_url: str | None = None
    author: GitIdentity | None = None
    committer: GitIdentity | None = None


class CommitResult(DTOBase):
    commit: CommitInfo
    content: ContentEntry | None = None

    @property
    def commit_sha(self) -> str:
        return self.commit.sha


@dataclass(slots=True)
class MemberOutcome:
    path: str
    succeeded: bool
    result: CommitResult | None = None
    reason: str | None = None


def parse_commit_result(payload: dict[str, Any] | None) -> CommitResult | None:
    if not payload or not isinstance(payload.get("commit"), dict):
        return None
    return CommitResult.model_validate(payload)


class AuthorSpec(DTOBase):
    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
