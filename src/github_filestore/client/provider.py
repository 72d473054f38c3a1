from __future__ import annotations

import logging
import threading

import requests

from github_filestore.cancellation import raise_if_cancelled
from github_filestore.config import GitHubConfig

from .github_client import GitHubContentsClient
from .protocol import ContentsApi

logger = logging.getLogger(__name__)


class StaticClientProvider:
    def __init__(self, client: ContentsApi) -> None:
        self.client = client

    def acquire(self, cancel: threading.Event | None = None) -> ContentsApi:
        raise_if_cancelled(cancel, operation="acquire client", path="")
        return self.client


class EnvClientProvider:
    """Builds a GitHubContentsClient from config on first use and reuses it."""

    def __init__(
        self,
        config: GitHubConfig | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config or GitHubConfig()
        self.session = session
        self._client: GitHubContentsClient | None = None
        self._lock = threading.Lock()

    def acquire(self, cancel: threading.Event | None = None) -> ContentsApi:
        raise_if_cancelled(cancel, operation="acquire client", path="")
        with self._lock:
            if self._client is None:
                logger.info(
                    "building github contents client api_base=%s token_env=%s",
                    self.config.api_base,
                    self.config.token_env,
                )
                self._client = GitHubContentsClient.from_env(
                    env_var=self.config.token_env,
                    api_base=self.config.api_base,
                    api_version=self.config.api_version,
                    user_agent=self.config.user_agent,
                    timeout_seconds=self.config.timeout_seconds,
                    session=self.session,
                )
            return self._client
