"""HMAC-SHA256 request signing for the ApexxCloud API.

Direct calls carry the signature in the ``X-Access-Key``, ``X-Signature`` and
``X-Timestamp`` headers. Pre-signed URLs carry it in the ``access_key``,
``signature`` and ``timestamp`` query parameters.

The string to sign is::

    {METHOD}\\n{PATH_WITH_QUERY}\\n{ISO8601_TIMESTAMP}

The server recomputes it from the raw request line, so the query string must
be serialized exactly as it is sent (see ``encode_query``).
"""

import hashlib
import hmac
import urllib.parse
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

# Header names for header-based auth
ACCESS_KEY_HEADER = "X-Access-Key"
SIGNATURE_HEADER = "X-Signature"
TIMESTAMP_HEADER = "X-Timestamp"

# Query parameter names for pre-signed URLs
ACCESS_KEY_PARAM = "access_key"
SIGNATURE_PARAM = "signature"
TIMESTAMP_PARAM = "timestamp"

AUTH_QUERY_PARAMS = (ACCESS_KEY_PARAM, SIGNATURE_PARAM, TIMESTAMP_PARAM)


@dataclass(frozen=True)
class SignedRequest:
    """Signature and the timestamp it was computed for.

    Attributes:
        signature: 64-character lowercase hex HMAC-SHA256 digest.
        timestamp: ISO 8601 timestamp included in the string to sign.
    """

    signature: str
    timestamp: str


class RequestSigner:
    """Signs request paths with a fixed access/secret key pair.

    Holds no state beyond the credentials; every call recomputes the
    signature so it always reflects the exact path and timestamp.
    """

    def __init__(self, access_key: str, secret_key: str) -> None:
        self.access_key = access_key
        self._secret_key = secret_key

    def sign(self, method: str, path: str, timestamp: str | None = None) -> SignedRequest:
        """Sign ``method`` + ``path`` at ``timestamp``.

        Args:
            method: HTTP verb, used as supplied (no case normalization).
            path: Request path including the query string, exactly as sent.
            timestamp: ISO 8601 timestamp. Defaults to the current time.

        Returns:
            The signature together with the timestamp it covers.
        """
        if timestamp is None:
            timestamp = iso_timestamp()
        signature = compute_signature(self._secret_key, method, path, timestamp)
        return SignedRequest(signature=signature, timestamp=timestamp)

    def auth_headers(self, method: str, path: str) -> dict[str, str]:
        """Return the auth headers for a direct API call."""
        signed = self.sign(method, path)
        return {
            ACCESS_KEY_HEADER: self.access_key,
            SIGNATURE_HEADER: signed.signature,
            TIMESTAMP_HEADER: signed.timestamp,
        }

    def auth_query(
        self, method: str, path: str, timestamp: str | None = None
    ) -> list[tuple[str, str]]:
        """Return the auth query parameters for a pre-signed URL.

        The parameters must be appended *after* the signed query string.
        """
        signed = self.sign(method, path, timestamp)
        return [
            (ACCESS_KEY_PARAM, self.access_key),
            (SIGNATURE_PARAM, signed.signature),
            (TIMESTAMP_PARAM, signed.timestamp),
        ]


# ---------------------------------------------------------------------------
# Module-level utility functions
# ---------------------------------------------------------------------------


def string_to_sign(method: str, path: str, timestamp: str) -> str:
    """Build the canonical string to sign."""
    return f"{method}\n{path}\n{timestamp}"


def compute_signature(secret_key: str, method: str, path: str, timestamp: str) -> str:
    """Compute the hex HMAC-SHA256 signature of a request.

    This is a standalone function usable without a RequestSigner instance.

    Args:
        secret_key: The secret key shared with the server.
        method: HTTP verb.
        path: Request path including the query string.
        timestamp: ISO 8601 timestamp.

    Returns:
        64-character lowercase hex string.
    """
    message = string_to_sign(method, path, timestamp)
    return hmac.new(
        secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def iso_timestamp(moment: datetime | None = None) -> str:
    """Render ``moment`` (default: now) as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    if moment is None:
        moment = datetime.now(timezone.utc)
    elif moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    millis = moment.microsecond // 1000
    return f"{moment.strftime('%Y-%m-%dT%H:%M:%S')}.{millis:03d}Z"


def encode_query(params: Iterable[tuple[str, Any]]) -> str:
    """Serialize ordered query parameters as application/x-www-form-urlencoded.

    Matches the WHATWG URLSearchParams serializer byte for byte: spaces
    become '+', '*', '-', '.', '_' and alphanumerics are left as-is and
    everything else is percent-encoded. Order is preserved, never sorted.

    Args:
        params: (name, value) pairs. None renders as an empty value.

    Returns:
        The query string without a leading '?'.
    """
    return "&".join(
        f"{_form_encode(name)}={_form_encode(_stringify(value))}" for name, value in params
    )


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _form_encode(s: str) -> str:
    # quote_plus never escapes '~', URLSearchParams does
    return urllib.parse.quote_plus(s, safe="*").replace("~", "%7E")
