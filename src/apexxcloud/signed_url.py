"""Operation table for pre-signed URLs.

Each ``SignedUrlType`` maps to one ``SignedUrlOperation`` describing the verb
the eventual caller of the URL will use, the path template, the arguments
that must be present and the query parameters appended after
``bucket_name``, ``region`` and ``key``. The parameter order is part of the
signed string and must not change.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from apexxcloud.errors import UnsupportedOperationError
from apexxcloud.validation import or_default, require, resolve

DEFAULT_VISIBILITY = "public"
DEFAULT_EXPIRES_IN = 3600


class SignedUrlType(str, Enum):
    """Operations a pre-signed URL can authorize."""

    UPLOAD = "upload"
    DELETE = "delete"
    START_MULTIPART = "start-multipart"
    UPLOAD_PART = "uploadpart"
    COMPLETE_MULTIPART = "completemultipart"
    CANCEL_MULTIPART = "cancelmultipart"
    DOWNLOAD = "download"


@dataclass(frozen=True)
class SignedUrlOptions:
    """Arguments accepted by ``generate_signed_url``.

    Which of them are required depends on the operation type.
    """

    key: str | None = None
    bucket_name: str | None = None
    region: str | None = None
    visibility: str | None = None
    expires_in: int | None = None
    upload_id: str | None = None
    part_number: int | None = None
    total_parts: int | None = None
    mime_type: str | None = None


ParamBuilder = Callable[[SignedUrlOptions], list[tuple[str, Any]]]


@dataclass(frozen=True)
class SignedUrlOperation:
    """How to sign one operation type.

    Attributes:
        method: HTTP verb covered by the signature.
        path: Path template; ``{upload_id}`` is substituted verbatim.
        required: Option names checked in order before signing.
        label: Operation name used in validation messages.
        extra_params: Builds the type-specific query parameters.
    """

    method: str
    path: str
    required: tuple[str, ...]
    label: str
    extra_params: ParamBuilder

    def validate(self, options: SignedUrlOptions) -> None:
        """Raise ValidationError for the first missing required option."""
        for field in self.required:
            require(getattr(options, field), field, self.label)

    def build_path(self, options: SignedUrlOptions) -> str:
        return self.path.format(upload_id=options.upload_id)


def _no_params(options: SignedUrlOptions) -> list[tuple[str, Any]]:
    return []


def _upload_params(options: SignedUrlOptions) -> list[tuple[str, Any]]:
    return [("visibility", resolve(options.visibility, default=DEFAULT_VISIBILITY))]


def _start_multipart_params(options: SignedUrlOptions) -> list[tuple[str, Any]]:
    return [
        ("totalParts", options.total_parts),
        ("mimeType", options.mime_type),
        ("visibility", resolve(options.visibility, default=DEFAULT_VISIBILITY)),
    ]


def _upload_part_params(options: SignedUrlOptions) -> list[tuple[str, Any]]:
    return [
        ("partNumber", options.part_number),
        ("totalParts", options.total_parts),
    ]


def _download_params(options: SignedUrlOptions) -> list[tuple[str, Any]]:
    return [("expiresIn", or_default(options.expires_in, DEFAULT_EXPIRES_IN))]


OPERATIONS: dict[SignedUrlType, SignedUrlOperation] = {
    SignedUrlType.UPLOAD: SignedUrlOperation(
        method="PUT",
        path="/api/v1/files/upload",
        required=("key",),
        label="upload operation",
        extra_params=_upload_params,
    ),
    SignedUrlType.DELETE: SignedUrlOperation(
        method="DELETE",
        path="/api/v1/files/delete",
        required=("key",),
        label="delete operation",
        extra_params=_no_params,
    ),
    SignedUrlType.START_MULTIPART: SignedUrlOperation(
        method="POST",
        path="/api/v1/files/multipart/start",
        required=("key", "total_parts", "mime_type"),
        label="start-multipart operation",
        extra_params=_start_multipart_params,
    ),
    SignedUrlType.UPLOAD_PART: SignedUrlOperation(
        method="POST",
        path="/api/v1/files/multipart/{upload_id}",
        required=("upload_id", "part_number", "key", "total_parts"),
        label="uploadpart operation",
        extra_params=_upload_part_params,
    ),
    SignedUrlType.COMPLETE_MULTIPART: SignedUrlOperation(
        method="POST",
        path="/api/v1/files/multipart/{upload_id}/complete",
        required=("upload_id", "key"),
        label="completemultipart operation",
        extra_params=_no_params,
    ),
    SignedUrlType.CANCEL_MULTIPART: SignedUrlOperation(
        method="DELETE",
        path="/api/v1/files/multipart/{upload_id}",
        required=("upload_id", "key"),
        label="cancelmultipart operation",
        extra_params=_no_params,
    ),
    # Answered by the server directly instead of being handed to a third party.
    SignedUrlType.DOWNLOAD: SignedUrlOperation(
        method="GET",
        path="/api/v1/files/signed-url",
        required=("key",),
        label="signed URL operation",
        extra_params=_download_params,
    ),
}


def parse_type(value: Any) -> SignedUrlType:
    """Coerce ``value`` to a SignedUrlType.

    Raises:
        UnsupportedOperationError: If ``value`` names no known operation.
    """
    try:
        return SignedUrlType(value)
    except ValueError:
        raise UnsupportedOperationError(value) from None
