"""
Translation between imgapi-manifest models and the IMGAPI JSON wire form.

Field names match the model attributes except for the entries of the
rename tables below. ``ImageVMProperties`` is not nested on the wire: its
four keys sit at the top level of the manifest object.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from .errors import ManifestDecodeError, describe_validation_error
from .models import ImageFile, Manifest

__all__ = [
    "dumps",
    "from_wire_string",
    "image_file_from_wire",
    "image_file_to_wire",
    "loads",
    "loads_many",
    "manifest_from_wire",
    "manifest_to_wire",
    "to_wire_string",
]

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

# model attribute -> wire key
_MANIFEST_RENAMES = {
    "format_version": "v",
    "image_type": "type",
}
_IMAGE_FILE_RENAMES = {
    "uncompressed_digest": "uncompressedDigest",
}

_FLATTENED_FIELD = "vm_image_properties"
_VM_PROPERTY_KEYS = ("nic_driver", "disk_driver", "cpu_type", "image_size")

# Decoding never fills defaults; the server always sends these.
_MANIFEST_REQUIRED_KEYS = (
    "v",
    "uuid",
    "owner",
    "name",
    "version",
    "state",
    "disabled",
    "public",
    "type",
    "os",
    "files",
)
_IMAGE_FILE_REQUIRED_KEYS = ("sha1", "size", "compression")


# ---------------------------------------------------------------------------
# Enumerated values
# ---------------------------------------------------------------------------


def to_wire_string(value: Enum) -> str:
    """
    Return the canonical string of an enumerated value.

    Raises ``TypeError`` when *value* is not an enum member.
    """
    if not isinstance(value, Enum):
        raise TypeError(f"expected an enumerated value, got {type(value).__name__}")
    return value.value


def from_wire_string(enum_type: type[E], text: Any) -> E:
    """
    Look up the member of *enum_type* whose canonical string is *text*.

    Raises ``ManifestDecodeError`` for anything else, including members of
    other enumerations; there is no fallback to a default member.
    """
    if isinstance(text, str) and not isinstance(text, Enum):
        for member in enum_type:
            if member.value == text:
                return member
    accepted = ", ".join(repr(member.value) for member in enum_type)
    raise ManifestDecodeError(
        f"unknown {enum_type.__name__} value {text!r}; expected one of {accepted}"
    )


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def _encode_value(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return _encode_model(value, {})
    if isinstance(value, Mapping):
        return {key: _encode_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode_value(item) for item in value]
    return to_jsonable_python(value)


def _encode_model(model: BaseModel, renames: Mapping[str, str]) -> dict[str, Any]:
    """Encode *model* field by field, omitting unset optional fields."""
    data: dict[str, Any] = {}
    for field in type(model).model_fields:
        value = getattr(model, field)
        if value is None:
            continue
        data[renames.get(field, field)] = _encode_value(value)
    return data


def image_file_to_wire(image_file: ImageFile) -> dict[str, Any]:
    return _encode_model(image_file, _IMAGE_FILE_RENAMES)


def manifest_to_wire(manifest: Manifest) -> dict[str, Any]:
    """Encode *manifest* as an IMGAPI JSON object."""
    data = _encode_model(manifest, _MANIFEST_RENAMES)
    vm_properties = data.pop(_FLATTENED_FIELD, None)
    if vm_properties is not None:
        data.update(vm_properties)
    return data


def dumps(manifest: Manifest, indent: Optional[int] = None) -> str:
    return json.dumps(manifest_to_wire(manifest), indent=indent)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _require_object(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ManifestDecodeError(
            f"expected a JSON object for {what}, got {type(data).__name__}"
        )
    return data


def _decode_model(
    model: type[BaseModel],
    data: Mapping[str, Any],
    renames: Mapping[str, str],
    required: tuple[str, ...],
    what: str,
) -> Any:
    missing = [key for key in required if key not in data]
    if missing:
        raise ManifestDecodeError(f"{what} is missing required key(s): {', '.join(missing)}")

    field_for_key = {wire: field for field, wire in renames.items()}
    fields: dict[str, Any] = {}
    for key, value in data.items():
        if key in renames:
            # the attribute name is not a wire key
            continue
        field = field_for_key.get(key, key)
        if field in model.model_fields:
            fields[field] = value
    try:
        payload = json.dumps(_encode_value(fields))
    except (TypeError, ValueError, PydanticSerializationError) as exc:
        raise ManifestDecodeError(f"{what} is not JSON data: {exc}") from exc
    # Strict JSON validation: no bool or int coercion, but UUID, timestamp,
    # URL and enum strings still parse.
    try:
        return model.model_validate_json(payload, strict=True)
    except ValidationError as exc:
        raise ManifestDecodeError(
            f"invalid {what}: {describe_validation_error(exc, renames)}"
        ) from exc


def image_file_from_wire(data: Any) -> ImageFile:
    """Decode one ``files`` entry; keys not known to ``ImageFile`` are ignored."""
    data = _require_object(data, "an image file")
    return _decode_model(
        ImageFile, data, _IMAGE_FILE_RENAMES, _IMAGE_FILE_REQUIRED_KEYS, "image file"
    )


def manifest_from_wire(data: Any) -> Manifest:
    """
    Decode an IMGAPI JSON object into a ``Manifest``.

    Unknown top-level keys are ignored. The VM property keys must be either
    all present or all absent.
    """
    data = dict(_require_object(data, "a manifest"))
    present = [key for key in _VM_PROPERTY_KEYS if key in data]
    if present and len(present) != len(_VM_PROPERTY_KEYS):
        absent = [key for key in _VM_PROPERTY_KEYS if key not in data]
        raise ManifestDecodeError(
            f"manifest has VM properties {', '.join(present)} "
            f"but is missing {', '.join(absent)}"
        )
    data.pop(_FLATTENED_FIELD, None)
    if present:
        data[_FLATTENED_FIELD] = {key: data.pop(key) for key in _VM_PROPERTY_KEYS}

    manifest = _decode_model(
        Manifest, data, _MANIFEST_RENAMES, _MANIFEST_REQUIRED_KEYS, "manifest"
    )
    logger.debug("Decoded manifest %s (%s@%s)", manifest.uuid, manifest.name, manifest.version)
    return manifest


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestDecodeError(f"invalid JSON: {exc}") from exc


def loads(text: str) -> Manifest:
    return manifest_from_wire(_parse_json(text))


def loads_many(text: str) -> list[Manifest]:
    """Decode a JSON array of manifests (a ListImages body) or a single manifest."""
    data = _parse_json(text)
    if isinstance(data, list):
        return [manifest_from_wire(item) for item in data]
    return [manifest_from_wire(data)]
