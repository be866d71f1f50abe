"""Errors raised while talking to GitHub."""

import json
from typing import Any, Optional


class GitHubError(Exception):
    """Base class for every GitHub communication failure."""


class UpstreamError(GitHubError):
    """GitHub answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        body: str = "",
        url: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.url = url

    def json(self) -> Optional[Any]:
        """Best-effort decode of the upstream body."""
        try:
            return json.loads(self.body) if self.body else None
        except ValueError:
            return None


class TransportError(GitHubError):
    """The request never produced a response (DNS, connect, timeout...)."""

    def __init__(self, message: str, *, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class MalformedResponseError(GitHubError):
    """GitHub answered 2xx with a body that is not the JSON shape we asked for."""

    def __init__(self, message: str, *, url: Optional[str] = None):
        super().__init__(message)
        self.url = url
