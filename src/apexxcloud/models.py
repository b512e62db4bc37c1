"""Data model types for the ApexxCloud SDK.

The API returns plain JSON which the client hands back verbatim; the only
structured value the caller sends is the list of parts that completes a
multipart upload.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import IO, Any, Mapping, Sequence, Union

from apexxcloud.errors import ValidationError
from apexxcloud.validation import PARTS_MESSAGE

# A payload is either an in-memory buffer or a readable binary stream.
FileData = Union[bytes, bytearray, memoryview, IO[bytes]]


@dataclass(frozen=True)
class Part:
    """An uploaded part of a multipart upload.

    Attributes:
        etag: The ETag the server returned for the part.
        part_number: 1-based position of the part.
    """

    etag: str
    part_number: int

    def to_dict(self) -> dict[str, Any]:
        """Return the wire representation ``{"ETag", "PartNumber"}``."""
        return {"ETag": self.etag, "PartNumber": int(self.part_number)}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Part:
        """Build a Part from an upload-part response or a wire dict."""
        return cls(etag=str(data["ETag"]), part_number=int(data["PartNumber"]))


def serialize_parts(
    parts: Sequence[Part | Mapping[str, Any]], operation: str
) -> list[dict[str, Any]]:
    """Convert caller-supplied parts to the wire list, preserving order.

    Raises:
        ValidationError: If an entry is neither a Part nor a mapping with
            ``ETag`` and an integer ``PartNumber``.
    """
    result = []
    for part in parts:
        if not isinstance(part, Part):
            try:
                part = Part.from_mapping(part)
            except (KeyError, TypeError, ValueError) as exc:
                raise ValidationError("parts", operation, PARTS_MESSAGE) from exc
        result.append(part.to_dict())
    return result
