from __future__ import annotations

import threading
from typing import Any, Protocol


class ContentsApi(Protocol):
    """GET/PUT/DELETE against /repos/{owner}/{repo}/contents/{path}."""

    def get_contents(
        self, owner: str, repo: str, path: str, *, ref: str | None = None
    ) -> dict[str, Any] | list[Any]:
        """Return a file object or a directory listing.

        Raises NotFoundError (or EmptyRepositoryError) when nothing lives at path.
        """

    def put_contents(
        self, owner: str, repo: str, path: str, body: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Create or update a file; returns the commit payload if any."""

    def delete_contents(
        self, owner: str, repo: str, path: str, body: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Delete a file; returns the commit payload if any."""


class ClientProvider(Protocol):
    def acquire(self, cancel: threading.Event | None = None) -> ContentsApi:
        """Return an authenticated contents client."""
