"""Error definitions for the ApexxCloud SDK."""

import json
from typing import Any

import httpx

# Network-level failures are raised by httpx unchanged; re-exported so callers
# can catch every SDK-relevant failure from one module.
TransportError = httpx.TransportError


class ApexxCloudError(Exception):
    """Base class for all errors raised by the SDK.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(ApexxCloudError):
    """The client was constructed without usable credentials."""

    def __init__(self, message: str = "Access key and secret key are required.") -> None:
        super().__init__(message)


class ValidationError(ApexxCloudError):
    """A required operation argument is missing or malformed.

    Attributes:
        field: Name of the offending argument.
        operation: Operation label used in the message (e.g. "upload part").
    """

    def __init__(self, field: str, operation: str, message: str | None = None) -> None:
        super().__init__(message or f"{field} is required for {operation}")
        self.field = field
        self.operation = operation


class UnsupportedOperationError(ApexxCloudError):
    """An unknown signed URL operation type was requested."""

    def __init__(self, operation_type: Any) -> None:
        super().__init__(f"Unsupported operation type: {operation_type}")
        self.operation_type = operation_type


class ApiError(ApexxCloudError):
    """The API answered with a non-success HTTP status.

    Attributes:
        status: HTTP status code of the response.
        data: Decoded response body (JSON value or raw text).
    """

    def __init__(self, status: int, data: Any) -> None:
        super().__init__(f"API Error {status}: {_describe(data)}")
        self.status = status
        self.data = data

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        """Build an ApiError from an httpx response."""
        try:
            data = response.json()
        except ValueError:
            data = response.text
        return cls(response.status_code, data)


def _describe(data: Any) -> str:
    """Prefer the server's ``message`` field, else the compact JSON body."""
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False, default=str)
