"""Pydantic models for imgapi-manifest.

The records here mirror the IMGAPI image manifest (format version 2):
https://github.com/TritonDataCenter/sdc-imgapi/blob/master/docs/index.md#image-manifests
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import AnyUrl, AwareDatetime, BaseModel, ConfigDict, Field, field_validator, model_validator

__all__ = [
    "CASE_STYLES",
    "DiskDrivers",
    "FILE_SIZE_SOFT_LIMIT",
    "ImageFile",
    "ImageFileCompression",
    "ImageOs",
    "ImageRequirementBootRom",
    "ImageRequirements",
    "ImageState",
    "ImageType",
    "ImageUsers",
    "ImageVMProperties",
    "MANIFEST_FORMAT_VERSION",
    "Manifest",
    "NAME_SOFT_LIMIT",
    "NIL_UUID",
    "NetDrivers",
    "RequirementNetworks",
    "VERSION_SOFT_LIMIT",
]

logger = logging.getLogger(__name__)

MANIFEST_FORMAT_VERSION = 2
NIL_UUID = UUID(int=0)

# Documented IMGAPI limits. Exceeding them is logged, never rejected.
NAME_SOFT_LIMIT = 512
VERSION_SOFT_LIMIT = 128
FILE_SIZE_SOFT_LIMIT = 20 * 1024**3


# ---------------------------------------------------------------------------
# Enumerated domain types
# ---------------------------------------------------------------------------


class _WireEnum(str, Enum):
    """Enum whose value is its canonical wire string."""

    def __str__(self) -> str:
        return self.value


class ImageState(_WireEnum):
    """Lifecycle state of an image."""

    ACTIVE = "active"
    UNACTIVATED = "unactivated"
    DISABLED = "disabled"
    CREATING = "creating"
    FAILED = "failed"

    @classmethod
    def default(cls) -> ImageState:
        return cls.CREATING


class ImageType(_WireEnum):
    """Kind of payload an image carries."""

    ZONE_DATASET = "zone-dataset"
    LX_DATASET = "lx-dataset"
    LXD = "lxd"
    ZVOL = "zvol"
    OTHER = "other"

    @classmethod
    def default(cls) -> ImageType:
        return cls.ZONE_DATASET


class ImageOs(_WireEnum):
    """OS family an image provides."""

    SMARTOS = "smartos"
    WINDOWS = "windows"
    LINUX = "linux"
    BSD = "bsd"
    ILLUMOS = "illumos"
    OTHER = "other"

    @classmethod
    def default(cls) -> ImageOs:
        return cls.SMARTOS


class ImageRequirementBootRom(_WireEnum):
    BIOS = "bios"
    UEFI = "uefi"


class NetDrivers(_WireEnum):
    VIRTIO = "virtio"
    E1000G0 = "e1000g0"


class DiskDrivers(_WireEnum):
    VIRTIO = "virtio"
    SATA = "sata"


class ImageFileCompression(_WireEnum):
    BZIP2 = "bzip2"
    GZIP = "gzip"
    NONE = "none"


# ImageState follows the snake_case convention of the IMGAPI state field; every
# other enumeration uses kebab-case. Multi-word states must keep underscores.
CASE_STYLES: dict[type[_WireEnum], str] = {
    ImageState: "underscored",
    ImageType: "hyphenated",
    ImageOs: "hyphenated",
    ImageRequirementBootRom: "hyphenated",
    NetDrivers: "hyphenated",
    DiskDrivers: "hyphenated",
    ImageFileCompression: "hyphenated",
}


def _freeze(value: Any) -> Any:
    """Deep-copy JSON-like data into read-only mappings and tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


# ---------------------------------------------------------------------------
# Nested value objects
# ---------------------------------------------------------------------------


class RequirementNetworks(BaseModel):
    """A named network interface an image needs at provisioning time."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str


class ImageRequirements(BaseModel):
    """Provisioning constraints for VMs created from an image."""

    model_config = ConfigDict(frozen=True)

    networks: Optional[tuple[RequirementNetworks, ...]] = None
    brand: Optional[str] = None
    ssh_key: Optional[bool] = None
    min_ram: Optional[int] = None     # MiB
    max_ram: Optional[int] = None     # MiB
    min_platform: Optional[Mapping[str, str]] = None
    max_platform: Optional[Mapping[str, str]] = None
    bootrom: Optional[ImageRequirementBootRom] = None

    @field_validator("min_platform", "max_platform")
    @classmethod
    def freeze_platforms(cls, value: Optional[Mapping[str, str]]) -> Optional[Mapping[str, str]]:
        return _freeze(value)


class ImageUsers(BaseModel):
    """A user for which a password is generated at provisioning."""

    model_config = ConfigDict(frozen=True)

    name: str


class ImageVMProperties(BaseModel):
    """Hardware properties of a zvol image, flattened into the manifest on the wire."""

    model_config = ConfigDict(frozen=True)

    nic_driver: NetDrivers
    disk_driver: DiskDrivers
    cpu_type: str          # QEMU CPU model
    image_size: int = Field(ge=0)   # MiB


class ImageFile(BaseModel):
    """
    Strict description of one image file.

    ``Manifest.files`` keeps the loose wire maps; use ``Manifest.image_files()``
    to get these.
    """

    model_config = ConfigDict(frozen=True)

    sha1: str
    size: int = Field(ge=0)   # bytes
    compression: ImageFileCompression
    dataset_guid: Optional[str] = None
    stor: Optional[str] = None
    digest: Optional[str] = None
    # Legacy docker field, slated for removal from IMGAPI.
    uncompressed_digest: Optional[str] = None

    @model_validator(mode="after")
    def warn_on_size(self) -> ImageFile:
        if self.size > FILE_SIZE_SOFT_LIMIT:
            logger.warning(
                "Image file %s is %d bytes, above the %d byte IMGAPI cap.",
                self.sha1,
                self.size,
                FILE_SIZE_SOFT_LIMIT,
            )
        return self


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------


class Manifest(BaseModel):
    """
    IMGAPI image manifest (format version 2).

    Instances are frozen snapshots; mapping fields hold read-only copies of
    what they were given. Construct them with
    ``imgapi_manifest.core.ManifestBuilder`` / ``build_manifest`` or decode
    them with ``imgapi_manifest.wire.manifest_from_wire``.
    """

    model_config = ConfigDict(frozen=True)

    format_version: Literal[2] = MANIFEST_FORMAT_VERSION
    uuid: UUID = NIL_UUID
    owner: UUID = NIL_UUID
    name: str
    version: str
    description: Optional[str] = None
    homepage: Optional[AnyUrl] = None
    eula: Optional[AnyUrl] = None
    icon: Optional[bool] = None
    state: ImageState = ImageState.CREATING
    # Only meaningful when state is FAILED; not checked.
    error: Optional[Mapping[str, Any]] = None
    disabled: bool = False
    public: bool = False
    published_at: Optional[AwareDatetime] = None
    image_type: ImageType = ImageType.ZONE_DATASET
    os: ImageOs = ImageOs.SMARTOS
    origin: Optional[UUID] = None
    files: tuple[Mapping[str, Any], ...] = ()
    acl: Optional[tuple[UUID, ...]] = None
    requirements: Optional[ImageRequirements] = None
    users: Optional[tuple[ImageUsers, ...]] = None
    billing_tags: Optional[tuple[str, ...]] = None
    traits: Optional[tuple[str, ...]] = None
    tags: Optional[Mapping[str, str]] = None
    generate_password: Optional[bool] = None
    inherited_directories: Optional[tuple[str, ...]] = None
    channels: Optional[tuple[str, ...]] = None
    vm_image_properties: Optional[ImageVMProperties] = None

    @field_validator("error", "files", "tags")
    @classmethod
    def freeze_mappings(cls, value: Any) -> Any:
        return _freeze(value)

    @field_validator("published_at")
    @classmethod
    def published_at_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def warn_on_soft_limits(self) -> Manifest:
        if len(self.name) > NAME_SOFT_LIMIT:
            logger.warning(
                "Manifest name is %d characters, above the %d character limit.",
                len(self.name),
                NAME_SOFT_LIMIT,
            )
        if len(self.version) > VERSION_SOFT_LIMIT:
            logger.warning(
                "Manifest version is %d characters, above the %d character limit.",
                len(self.version),
                VERSION_SOFT_LIMIT,
            )
        return self

    @property
    def is_vm_image(self) -> bool:
        return self.vm_image_properties is not None

    def image_files(self) -> list[ImageFile]:
        """Parse ``files`` into ``ImageFile`` values, ignoring admin-only extras."""
        from .wire import image_file_from_wire

        return [image_file_from_wire(entry) for entry in self.files]
