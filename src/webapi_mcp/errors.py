"""Error types raised by the definition pipeline and the request executor."""

from typing import Any


class WebApiError(Exception):
    """Base class for all errors raised by webapi_mcp."""


class ValidationError(WebApiError):
    """An API, method, or parameter definition is malformed or incomplete."""


class LoadError(WebApiError):
    """A file, directory, or config document could not be loaded."""


class ApiCallError(WebApiError):
    """An outbound API call failed.

    ``status`` is the upstream HTTP status, ``0`` for network-level failures
    and ``408`` for timeouts. ``body`` holds the upstream response body when
    one was received.
    """

    def __init__(self, message: str, status: int, body: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.body = body

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "status": self.status,
            "body": self.body,
        }
