"""Error types for imgapi-manifest."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Optional

from pydantic import ValidationError

__all__ = [
    "ManifestBuilderError",
    "ManifestDecodeError",
    "ManifestError",
    "MissingRequiredFieldError",
    "ValidationFailedError",
    "describe_validation_error",
]


class ManifestError(Exception):
    """Base class for every error raised by imgapi-manifest."""


class ManifestBuilderError(ManifestError):
    """Raised by a builder's ``build()`` when the accumulated fields are unusable."""


class MissingRequiredFieldError(ManifestBuilderError):
    """A required field was never set before ``build()``."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"field {field} must be initialized")


class ValidationFailedError(ManifestBuilderError):
    """Any other builder rule violation."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"validation error: {message}")


class ManifestDecodeError(ManifestError):
    """Wire data could not be translated into typed values."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def describe_validation_error(
    exc: ValidationError, renames: Optional[Mapping[str, str]] = None
) -> str:
    """
    Flatten a pydantic ``ValidationError`` into one line.

    *renames* maps a model field name to the key reported in its place, so
    decode errors name the wire key (``type``) rather than the attribute.
    """
    renames = renames or {}
    parts = []
    for error in exc.errors():
        loc = [str(part) for part in error["loc"]]
        if loc:
            loc[0] = renames.get(loc[0], loc[0])
        parts.append(f"{'.'.join(loc) or '<root>'}: {error['msg']}")
    return "; ".join(parts)
