"""Core logic for imgapi-manifest: builders and the construction functions."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ValidationError

from .errors import MissingRequiredFieldError, ValidationFailedError, describe_validation_error
from .models import (
    DiskDrivers,
    ImageFile,
    ImageFileCompression,
    ImageOs,
    ImageRequirementBootRom,
    ImageRequirements,
    ImageState,
    ImageType,
    ImageUsers,
    ImageVMProperties,
    Manifest,
    NetDrivers,
    RequirementNetworks,
)
from .wire import from_wire_string, image_file_to_wire, to_wire_string

__all__ = [
    "ImageFileBuilder",
    "ImageRequirementsBuilder",
    "ImageUsersBuilder",
    "ImageVMPropertiesBuilder",
    "ManifestBuilder",
    "ManifestOptions",
    "RequirementNetworksBuilder",
    "build_manifest",
    "from_wire_string",
    "to_wire_string",
    "vm_image_properties",
]

logger = logging.getLogger(__name__)


class _Builder:
    """
    Accumulates field values for one model and builds it exactly once.

    Unset fields take the model's declared default. A failed ``build()``
    leaves the builder open so the caller can supply what was missing; a
    successful one consumes it.
    """

    _model: ClassVar[type[BaseModel]]
    _required: ClassVar[tuple[str, ...]] = ()

    def __init__(self) -> None:
        self._fields: dict[str, Any] = {}
        self._consumed = False

    def _set(self, field: str, value: Any) -> Any:
        self._check_open()
        self._fields[field] = value
        return self

    def _check_open(self) -> None:
        if self._consumed:
            raise ValidationFailedError(
                f"{type(self).__name__} has already been consumed by build()"
            )

    def build(self) -> Any:
        self._check_open()
        for field in self._required:
            if self._fields.get(field) is None:
                raise MissingRequiredFieldError(field)
        try:
            value = self._model.model_validate(self._fields)
        except ValidationError as exc:
            raise ValidationFailedError(describe_validation_error(exc)) from exc
        self._consumed = True
        logger.debug("Built %s from fields %s", self._model.__name__, sorted(self._fields))
        return value


def _nested(value: Any) -> Any:
    """Accept a finished value object or a builder for one."""
    if isinstance(value, _Builder):
        return value.build()
    return value


def _sequence(values: Iterable[Any]) -> tuple[Any, ...]:
    if isinstance(values, (str, bytes)):
        raise ValidationFailedError("expected a sequence of values, got a single string")
    return tuple(values)


# ---------------------------------------------------------------------------
# Nested value object builders
# ---------------------------------------------------------------------------


class RequirementNetworksBuilder(_Builder):
    _model = RequirementNetworks
    _required = ("name", "description")

    def name(self, value: str) -> RequirementNetworksBuilder:
        return self._set("name", value)

    def description(self, value: str) -> RequirementNetworksBuilder:
        return self._set("description", value)

    def build(self) -> RequirementNetworks:
        return super().build()


class ImageRequirementsBuilder(_Builder):
    _model = ImageRequirements

    def networks(
        self, value: Iterable[Union[RequirementNetworks, RequirementNetworksBuilder]]
    ) -> ImageRequirementsBuilder:
        return self._set("networks", tuple(_nested(n) for n in _sequence(value)))

    def brand(self, value: str) -> ImageRequirementsBuilder:
        return self._set("brand", value)

    def ssh_key(self, value: bool) -> ImageRequirementsBuilder:
        return self._set("ssh_key", value)

    def min_ram(self, value: int) -> ImageRequirementsBuilder:
        """Minimum RAM in MiB."""
        return self._set("min_ram", value)

    def max_ram(self, value: int) -> ImageRequirementsBuilder:
        """Maximum RAM in MiB."""
        return self._set("max_ram", value)

    def min_platform(self, value: Mapping[str, str]) -> ImageRequirementsBuilder:
        return self._set("min_platform", dict(value))

    def max_platform(self, value: Mapping[str, str]) -> ImageRequirementsBuilder:
        return self._set("max_platform", dict(value))

    def bootrom(self, value: Union[ImageRequirementBootRom, str]) -> ImageRequirementsBuilder:
        return self._set("bootrom", value)

    def build(self) -> ImageRequirements:
        return super().build()


class ImageUsersBuilder(_Builder):
    _model = ImageUsers
    _required = ("name",)

    def name(self, value: str) -> ImageUsersBuilder:
        return self._set("name", value)

    def build(self) -> ImageUsers:
        return super().build()


class ImageVMPropertiesBuilder(_Builder):
    """Builder for ``ImageVMProperties``; every field is required."""

    _model = ImageVMProperties
    _required = ("nic_driver", "disk_driver", "cpu_type", "image_size")

    def nic_driver(self, value: Union[NetDrivers, str]) -> ImageVMPropertiesBuilder:
        return self._set("nic_driver", value)

    def disk_driver(self, value: Union[DiskDrivers, str]) -> ImageVMPropertiesBuilder:
        return self._set("disk_driver", value)

    def cpu_type(self, value: str) -> ImageVMPropertiesBuilder:
        return self._set("cpu_type", value)

    def image_size(self, value: int) -> ImageVMPropertiesBuilder:
        """Disk size in MiB."""
        return self._set("image_size", value)

    def build(self) -> ImageVMProperties:
        return super().build()


class ImageFileBuilder(_Builder):
    _model = ImageFile
    _required = ("sha1", "size", "compression")

    def sha1(self, value: str) -> ImageFileBuilder:
        return self._set("sha1", value)

    def size(self, value: int) -> ImageFileBuilder:
        """Size in bytes."""
        return self._set("size", value)

    def compression(self, value: Union[ImageFileCompression, str]) -> ImageFileBuilder:
        return self._set("compression", value)

    def dataset_guid(self, value: str) -> ImageFileBuilder:
        return self._set("dataset_guid", value)

    def stor(self, value: str) -> ImageFileBuilder:
        return self._set("stor", value)

    def digest(self, value: str) -> ImageFileBuilder:
        return self._set("digest", value)

    def uncompressed_digest(self, value: str) -> ImageFileBuilder:
        return self._set("uncompressed_digest", value)

    def build(self) -> ImageFile:
        return super().build()


def vm_image_properties(
    nic_driver: Union[NetDrivers, str],
    disk_driver: Union[DiskDrivers, str],
    cpu_type: str,
    image_size: int,
) -> ImageVMProperties:
    """Build ``ImageVMProperties`` in one call."""
    return (
        ImageVMPropertiesBuilder()
        .nic_driver(nic_driver)
        .disk_driver(disk_driver)
        .cpu_type(cpu_type)
        .image_size(image_size)
        .build()
    )


# ---------------------------------------------------------------------------
# Manifest builder
# ---------------------------------------------------------------------------


class ManifestBuilder(_Builder):
    """
    Fluent builder for ``Manifest``.

    Only ``name`` and ``version`` are required. ``format_version``, ``uuid``
    and ``owner`` have no setters: the first is fixed and the others are
    assigned by the IMGAPI server.
    """

    _model = Manifest
    _required = ("name", "version")

    def name(self, value: str) -> ManifestBuilder:
        return self._set("name", value)

    def version(self, value: str) -> ManifestBuilder:
        return self._set("version", value)

    def description(self, value: str) -> ManifestBuilder:
        return self._set("description", value)

    def homepage(self, value: str) -> ManifestBuilder:
        return self._set("homepage", value)

    def eula(self, value: str) -> ManifestBuilder:
        return self._set("eula", value)

    def icon(self, value: bool) -> ManifestBuilder:
        return self._set("icon", value)

    def state(self, value: Union[ImageState, str]) -> ManifestBuilder:
        return self._set("state", value)

    def error(self, value: Mapping[str, Any]) -> ManifestBuilder:
        """Failure details; by convention only set when state is ``failed``."""
        return self._set("error", dict(value))

    def disabled(self, value: bool) -> ManifestBuilder:
        return self._set("disabled", value)

    def public(self, value: bool) -> ManifestBuilder:
        return self._set("public", value)

    def published_at(self, value: Union[datetime, str]) -> ManifestBuilder:
        return self._set("published_at", value)

    def image_type(self, value: Union[ImageType, str]) -> ManifestBuilder:
        return self._set("image_type", value)

    def os(self, value: Union[ImageOs, str]) -> ManifestBuilder:
        return self._set("os", value)

    def origin(self, value: Union[UUID, str]) -> ManifestBuilder:
        """UUID of the origin image of an incremental image."""
        return self._set("origin", value)

    def files(
        self, value: Iterable[Union[ImageFile, ImageFileBuilder, Mapping[str, Any]]]
    ) -> ManifestBuilder:
        entries = []
        for entry in _sequence(value):
            entry = _nested(entry)
            if isinstance(entry, ImageFile):
                entries.append(image_file_to_wire(entry))
            else:
                entries.append(dict(entry))
        return self._set("files", tuple(entries))

    def acl(self, value: Iterable[Union[UUID, str]]) -> ManifestBuilder:
        return self._set("acl", _sequence(value))

    def requirements(
        self, value: Union[ImageRequirements, ImageRequirementsBuilder]
    ) -> ManifestBuilder:
        return self._set("requirements", _nested(value))

    def users(
        self, value: Iterable[Union[ImageUsers, ImageUsersBuilder, str]]
    ) -> ManifestBuilder:
        users = []
        for user in _sequence(value):
            if isinstance(user, str):
                user = ImageUsers(name=user)
            users.append(_nested(user))
        return self._set("users", tuple(users))

    def billing_tags(self, value: Iterable[str]) -> ManifestBuilder:
        return self._set("billing_tags", _sequence(value))

    def traits(self, value: Iterable[str]) -> ManifestBuilder:
        return self._set("traits", _sequence(value))

    def tags(self, value: Mapping[str, str]) -> ManifestBuilder:
        return self._set("tags", dict(value))

    def generate_password(self, value: bool) -> ManifestBuilder:
        return self._set("generate_password", value)

    def inherited_directories(self, value: Iterable[str]) -> ManifestBuilder:
        return self._set("inherited_directories", _sequence(value))

    def channels(self, value: Iterable[str]) -> ManifestBuilder:
        return self._set("channels", _sequence(value))

    def vm_image_properties(
        self, value: Union[ImageVMProperties, ImageVMPropertiesBuilder]
    ) -> ManifestBuilder:
        return self._set("vm_image_properties", _nested(value))

    def build(self) -> Manifest:
        return super().build()


@dataclass(frozen=True)
class ManifestOptions:
    """
    Optional manifest fields for ``build_manifest``.

    ``None`` means "not set": the field takes its manifest default, listed
    next to each attribute, or stays absent from the wire form.
    """

    description: Optional[str] = None                 # absent
    homepage: Optional[str] = None                    # absent
    eula: Optional[str] = None                        # absent
    icon: Optional[bool] = None                       # absent
    state: Optional[Union[ImageState, str]] = None    # creating
    error: Optional[Mapping[str, Any]] = None         # absent
    disabled: Optional[bool] = None                   # False
    public: Optional[bool] = None                     # False
    published_at: Optional[Union[datetime, str]] = None   # absent
    image_type: Optional[Union[ImageType, str]] = None    # zone-dataset
    os: Optional[Union[ImageOs, str]] = None          # smartos
    origin: Optional[Union[UUID, str]] = None         # absent
    files: Optional[Iterable[Any]] = None             # empty
    acl: Optional[Iterable[Union[UUID, str]]] = None  # absent
    requirements: Optional[Union[ImageRequirements, ImageRequirementsBuilder]] = None
    users: Optional[Iterable[Any]] = None             # absent
    billing_tags: Optional[Iterable[str]] = None      # absent
    traits: Optional[Iterable[str]] = None            # absent
    tags: Optional[Mapping[str, str]] = None          # absent
    generate_password: Optional[bool] = None          # absent
    inherited_directories: Optional[Iterable[str]] = None  # absent
    channels: Optional[Iterable[str]] = None          # absent
    vm_image_properties: Optional[Union[ImageVMProperties, ImageVMPropertiesBuilder]] = None


def build_manifest(
    name: str, version: str, options: Optional[ManifestOptions] = None
) -> Manifest:
    """
    Build a ``Manifest`` from its two required fields plus *options*.

    Raises ``MissingRequiredFieldError`` or ``ValidationFailedError``.
    """
    builder = ManifestBuilder().name(name).version(version)
    if options is not None:
        for option in dataclasses.fields(options):
            value = getattr(options, option.name)
            if value is not None:
                getattr(builder, option.name)(value)
    return builder.build()
