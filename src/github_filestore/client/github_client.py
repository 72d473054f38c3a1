from __future__ import annotations

import logging
import os
from typing import Any
from urllib.parse import quote

import requests

from github_filestore.config import GITHUB_API_BASE
from github_filestore.errors import EmptyRepositoryError, NotFoundError, TransportError

_EMPTY_REPOSITORY_STATUS_CODES = {404, 409}

logger = logging.getLogger(__name__)


class GitHubContentsClient:
    """requests-backed client for the GitHub repository contents endpoints."""

    def __init__(
        self,
        *,
        token: str | None = None,
        api_base: str = GITHUB_API_BASE,
        api_version: str = "2022-11-28",
        user_agent: str = "github-filestore/0.1.0",
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        if token is not None and not token.strip():
            raise ValueError("GitHub token is empty.")
        if not api_base.strip():
            raise ValueError("GitHub API base URL is empty.")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0.")

        self.token = token
        self.api_base = api_base.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

        self.session.headers.setdefault("Accept", "application/vnd.github+json")
        self.session.headers.setdefault("X-GitHub-Api-Version", api_version)
        self.session.headers.setdefault("User-Agent", user_agent)
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_env(
        cls,
        *,
        env_var: str = "GITHUB_TOKEN",
        api_base: str = GITHUB_API_BASE,
        api_version: str = "2022-11-28",
        user_agent: str = "github-filestore/0.1.0",
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
    ) -> GitHubContentsClient:
        token = os.getenv(env_var, "").strip()
        if not token:
            logger.warning("environment variable %s is not set; using anonymous access", env_var)
        return cls(
            token=token or None,
            api_base=api_base,
            api_version=api_version,
            user_agent=user_agent,
            timeout_seconds=timeout_seconds,
            session=session,
        )

    def contents_url(self, owner: str, repo: str, path: str) -> str:
        base = f"{self.api_base}/repos/{quote(owner, safe='')}/{quote(repo, safe='')}/contents"
        if not path:
            return base
        return f"{base}/{quote(path, safe='/')}"

    def get_contents(
        self, owner: str, repo: str, path: str, *, ref: str | None = None
    ) -> dict[str, Any] | list[Any]:
        params = {"ref": ref} if ref else None
        payload = self._request("GET", owner, repo, path, params=params)
        if not isinstance(payload, (dict, list)):
            raise TransportError(
                f"GET {owner}/{repo}/{path}: unexpected response body",
            )
        return payload

    def put_contents(
        self, owner: str, repo: str, path: str, body: dict[str, Any]
    ) -> dict[str, Any] | None:
        return self._expect_object("PUT", owner, repo, path, body)

    def delete_contents(
        self, owner: str, repo: str, path: str, body: dict[str, Any]
    ) -> dict[str, Any] | None:
        return self._expect_object("DELETE", owner, repo, path, body)

    def _expect_object(
        self, method: str, owner: str, repo: str, path: str, body: dict[str, Any]
    ) -> dict[str, Any] | None:
        payload = self._request(method, owner, repo, path, json=body)
        if payload is None:
            return None
        if not isinstance(payload, dict):
            raise TransportError(f"{method} {owner}/{repo}/{path}: unexpected response body")
        return payload

    def _request(
        self,
        method: str,
        owner: str,
        repo: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        url = self.contents_url(owner, repo, path)
        logger.debug("github_contents request method=%s url=%s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise self._translate_http_error(method, owner, repo, path, exc) from exc
        except requests.RequestException as exc:
            raise TransportError(f"{method} {owner}/{repo}/{path} failed: {exc}") from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(
                f"{method} {owner}/{repo}/{path}: response is not JSON",
                status_code=response.status_code,
            ) from exc

    def _translate_http_error(
        self,
        method: str,
        owner: str,
        repo: str,
        path: str,
        error: requests.HTTPError,
    ) -> Exception:
        response = error.response
        if response is None:
            return TransportError(f"{method} {owner}/{repo}/{path} failed: {error}")

        status_code = response.status_code
        message = self._extract_error_message(response)
        if status_code in _EMPTY_REPOSITORY_STATUS_CODES and "empty" in message.lower():
            return EmptyRepositoryError(
                f"Repository is empty: {owner}/{repo} ({method} {path})",
                path=path,
            )
        if status_code == 404:
            return NotFoundError(f"File not found: {path}", path=path)
        return TransportError(
            f"{method} {owner}/{repo}/{path} failed with status {status_code}: {message}",
            status_code=status_code,
        )

    @staticmethod
    def _extract_error_message(response: requests.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text
        if isinstance(payload, dict):
            message = payload.get("message")
            if isinstance(message, str):
                return message
        return response.text
