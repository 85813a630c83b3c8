"""imgapi-manifest: typed IMGAPI image manifests with builders and a wire codec."""

from __future__ import annotations

from .core import ManifestBuilder, ManifestOptions, build_manifest
from .errors import (
    ManifestBuilderError,
    ManifestDecodeError,
    ManifestError,
    MissingRequiredFieldError,
    ValidationFailedError,
)
from .models import Manifest
from .wire import manifest_from_wire, manifest_to_wire

__version__ = "0.2.0"

__all__ = [
    "Manifest",
    "ManifestBuilder",
    "ManifestBuilderError",
    "ManifestDecodeError",
    "ManifestError",
    "ManifestOptions",
    "MissingRequiredFieldError",
    "ValidationFailedError",
    "build_manifest",
    "manifest_from_wire",
    "manifest_to_wire",
]
