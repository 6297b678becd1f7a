"""Exceptions raised by the remote speech and extraction services."""

from typing import Any, Optional


class RemoteServiceError(Exception):
    """Base exception for remote service errors."""
    pass


class RemoteUnavailableError(RemoteServiceError):
    """
    The remote service could not be used: no credential configured,
    network failure, non-success response, or an empty/blocked reply.
    """

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(f"{service}: {message}")


class MalformedResponseError(RemoteServiceError):
    """The remote call succeeded but the payload has the wrong shape."""

    def __init__(
        self,
        message: str,
        raw: Optional[str] = None,
        errors: Optional[list[dict[str, Any]]] = None,
    ):
        self.raw = raw
        self.errors = errors or []
        super().__init__(message)
