from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .messages import DEFAULT_MESSAGE_PREFIX

GITHUB_API_BASE = "https://api.github.com"
RAW_CONTENT_BASE = "https://raw.githubusercontent.com"


class GitHubConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    api_base: str = GITHUB_API_BASE
    raw_base: str = RAW_CONTENT_BASE
    token_env: str = "GITHUB_TOKEN"
    api_version: str = "2022-11-28"
    timeout_seconds: float = Field(default=30.0, gt=0.0)
    user_agent: str = "github-filestore/0.1.0"

    @field_validator("api_base", "raw_base")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        normalized = value.strip().rstrip("/")
        if not normalized.startswith(("http://", "https://")):
            raise ValueError("github base URLs must start with http:// or https://")
        return normalized

    @field_validator("token_env")
    @classmethod
    def validate_token_env(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("github.token_env must not be empty")
        return normalized


class CommitDefaults(BaseModel):
    model_config = ConfigDict(extra="forbid")

    branch: str = "main"
    author_name: str | None = None
    author_email: str | None = None
    message_prefix: str = DEFAULT_MESSAGE_PREFIX

    @field_validator("branch")
    @classmethod
    def validate_branch(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("commit.branch must not be empty")
        return normalized

    @model_validator(mode="after")
    def validate_author_pair(self) -> CommitDefaults:
        if (self.author_name is None) != (self.author_email is None):
            raise ValueError("commit.author_name and commit.author_email must be set together")
        return self


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    commit: CommitDefaults = Field(default_factory=CommitDefaults)


def load_config(path: str | Path) -> AppConfig:
    raw = Path(path).read_text(encoding="utf-8")
    payload = _parse_yaml_or_json(raw)
    try:
        return AppConfig.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


def _parse_yaml_or_json(raw: str) -> dict[str, Any]:
    if not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        parsed = _parse_yaml(raw)
    if not isinstance(parsed, dict):
        raise ValueError("Configuration root must be an object.")
    return parsed


def _parse_yaml(raw: str) -> dict[str, Any]:
    import yaml

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ValueError(f"Configuration is neither JSON nor YAML: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ValueError("Configuration root must be an object.")
    return parsed
