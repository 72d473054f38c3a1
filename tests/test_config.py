from __future__ import annotations

import json

import pytest

from github_filestore.config import AppConfig, CommitDefaults, load_config


def test_load_config_json(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "github": {"api_base": "https://ghe.example.com/api/v3/", "timeout_seconds": 5},
                "commit": {"branch": "trunk"},
            }
        ),
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.github.api_base == "https://ghe.example.com/api/v3"
    assert config.github.timeout_seconds == 5
    assert config.github.token_env == "GITHUB_TOKEN"
    assert config.commit.branch == "trunk"
    assert config.commit.message_prefix == "[File Store Update]"


def test_load_config_yaml(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "github:\n"
        "  token_env: MY_TOKEN\n"
        "commit:\n"
        "  author_name: Bot\n"
        "  author_email: bot@example.com\n",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.github.token_env == "MY_TOKEN"
    assert config.commit.author_name == "Bot"
    assert config.commit.author_email == "bot@example.com"


def test_empty_config_uses_defaults(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")

    assert load_config(path) == AppConfig()


def test_load_config_rejects_unknown_keys(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"github": {"tokn_env": "X"}}), encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid configuration"):
        load_config(path)


def test_author_defaults_must_be_paired() -> None:
    with pytest.raises(ValueError):
        CommitDefaults(author_name="Bot")


def test_non_object_root_rejected(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(ValueError, match="root must be an object"):
        load_config(path)
