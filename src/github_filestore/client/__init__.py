"""Clients for the GitHub repository contents API."""

from .github_client import GitHubContentsClient
from .memory import InMemoryContentsApi, git_blob_sha
from .protocol import ClientProvider, ContentsApi
from .provider import EnvClientProvider, StaticClientProvider

__all__ = [
    "ClientProvider",
    "ContentsApi",
    "EnvClientProvider",
    "GitHubContentsClient",
    "InMemoryContentsApi",
    "StaticClientProvider",
    "git_blob_sha",
]
