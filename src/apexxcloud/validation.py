"""Argument validation and default resolution for SDK operations.

Every operation checks its required arguments with ``require`` before any
request is built, and resolves optional ones through ``resolve`` so the
argument -> client config -> literal default chain behaves the same
everywhere.
"""

from typing import Any

from apexxcloud.errors import ValidationError

PARTS_MESSAGE = "parts must be a list of {ETag, PartNumber}"

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def is_unset(value: Any) -> bool:
    """Return True for values treated as "not supplied" (None, "", 0)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (str, int, float)):
        return not value
    return value is None


def require(value: Any, field: str, operation: str) -> None:
    """Fail when a required operation argument is missing.

    Args:
        value: The supplied argument.
        field: Argument name reported in the error.
        operation: Operation label reported in the error.

    Raises:
        ValidationError: ``"<field> is required for <operation>"``.
    """
    if is_unset(value):
        raise ValidationError(field, operation)


def require_payload(value: Any, field: str, operation: str) -> None:
    """Fail when a binary payload is missing. Empty payloads are allowed."""
    if value is None:
        raise ValidationError(field, operation)


def require_parts(parts: Any, operation: str) -> None:
    """Fail unless ``parts`` is a list or tuple of completed parts."""
    if not isinstance(parts, (list, tuple)):
        raise ValidationError("parts", operation, PARTS_MESSAGE)


def resolve(*candidates: Any, default: Any = None) -> Any:
    """Return the first supplied candidate, else ``default``.

    Candidates are checked in order (call argument, then client config).
    None and "" count as unset.
    """
    for candidate in candidates:
        if candidate is not None and candidate != "":
            return candidate
    return default


def or_default(value: Any, default: Any) -> Any:
    """Return ``value`` unless ``is_unset`` says it was not supplied.

    Used for numeric options where 0 means "use the default" (page, limit,
    expires_in).
    """
    return default if is_unset(value) else value
