"""Tests for imgapi_manifest.models."""

from __future__ import annotations

import json
from enum import Enum
from uuid import UUID

import pytest
from pydantic import ValidationError

from imgapi_manifest.core import ManifestBuilder
from imgapi_manifest.errors import ManifestDecodeError
from imgapi_manifest.models import (
    CASE_STYLES,
    MANIFEST_FORMAT_VERSION,
    NIL_UUID,
    DiskDrivers,
    ImageFile,
    ImageFileCompression,
    ImageOs,
    ImageRequirementBootRom,
    ImageRequirements,
    ImageState,
    ImageType,
    Manifest,
    NetDrivers,
)
from imgapi_manifest.wire import (
    from_wire_string,
    manifest_from_wire,
    manifest_to_wire,
    to_wire_string,
)

ALL_ENUMS = [
    ImageState,
    ImageType,
    ImageOs,
    ImageRequirementBootRom,
    NetDrivers,
    DiskDrivers,
    ImageFileCompression,
]


def _members() -> list[Enum]:
    return [member for enum_type in ALL_ENUMS for member in enum_type]


# ---------------------------------------------------------------------------
# Enumerated domain types
# ---------------------------------------------------------------------------


class TestEnums:
    @pytest.mark.parametrize("member", _members(), ids=lambda m: f"{type(m).__name__}.{m.name}")
    def test_canonical_string_round_trip(self, member: Enum) -> None:
        text = to_wire_string(member)
        assert from_wire_string(type(member), text) is member
        assert str(member) == text

    @pytest.mark.parametrize(
        ("member", "text"),
        [
            (ImageType.ZVOL, "zvol"),
            (ImageType.LX_DATASET, "lx-dataset"),
            (ImageType.ZONE_DATASET, "zone-dataset"),
            (ImageState.UNACTIVATED, "unactivated"),
            (NetDrivers.E1000G0, "e1000g0"),
            (NetDrivers.VIRTIO, "virtio"),
            (DiskDrivers.SATA, "sata"),
            (ImageFileCompression.NONE, "none"),
            (ImageRequirementBootRom.UEFI, "uefi"),
            (ImageOs.ILLUMOS, "illumos"),
        ],
    )
    def test_known_strings(self, member: Enum, text: str) -> None:
        assert to_wire_string(member) == text

    def test_defaults(self) -> None:
        assert ImageState.default() is ImageState.CREATING
        assert ImageType.default() is ImageType.ZONE_DATASET
        assert ImageOs.default() is ImageOs.SMARTOS

    def test_case_styles_cover_every_enum(self) -> None:
        assert set(CASE_STYLES) == set(ALL_ENUMS)
        assert CASE_STYLES[ImageState] == "underscored"
        assert all(
            style == "hyphenated"
            for enum_type, style in CASE_STYLES.items()
            if enum_type is not ImageState
        )

    def test_unknown_string_raises_decode_error(self) -> None:
        with pytest.raises(ManifestDecodeError, match="ImageType"):
            from_wire_string(ImageType, "docker")

    def test_lookup_is_case_sensitive(self) -> None:
        with pytest.raises(ManifestDecodeError):
            from_wire_string(NetDrivers, "VIRTIO")

    def test_unknown_string_never_falls_back_to_default(self) -> None:
        with pytest.raises(ManifestDecodeError):
            from_wire_string(ImageState, "")

    def test_to_wire_string_rejects_plain_strings(self) -> None:
        with pytest.raises(TypeError):
            to_wire_string("zvol")  # type: ignore[arg-type]

    def test_member_of_other_enum_rejected(self) -> None:
        with pytest.raises(ManifestDecodeError, match="DiskDrivers"):
            from_wire_string(DiskDrivers, NetDrivers.VIRTIO)

    @pytest.mark.parametrize("value", [ImageType.ZVOL, None, 1, b"zvol"])
    def test_non_string_input_rejected(self, value: object) -> None:
        with pytest.raises(ManifestDecodeError):
            from_wire_string(ImageType, value)


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------


class TestManifest:
    def test_direct_construction_defaults(self) -> None:
        manifest = Manifest(name="x", version="1")
        assert manifest.format_version == MANIFEST_FORMAT_VERSION == 2
        assert manifest.uuid == NIL_UUID == UUID(int=0)
        assert manifest.files == ()

    def test_is_frozen(self, minimal_manifest: Manifest) -> None:
        with pytest.raises(ValidationError):
            minimal_manifest.name = "changed"  # type: ignore[misc]

    def test_tags_are_read_only(self) -> None:
        manifest = ManifestBuilder().name("x").version("1").tags({"role": "db"}).build()
        with pytest.raises(TypeError):
            manifest.tags["role"] = "web"  # type: ignore[index]
        assert manifest.tags == {"role": "db"}

    def test_error_does_not_alias_caller_data(self) -> None:
        error = {"message": "boom", "details": {"step": 1}, "trace": ["a"]}
        manifest = (
            ManifestBuilder().name("x").version("1").state("failed").error(error).build()
        )
        error["message"] = "changed"
        error["details"]["step"] = 2
        error["trace"].append("b")
        assert manifest.error is not None
        assert manifest.error["message"] == "boom"
        assert manifest.error["details"]["step"] == 1
        assert manifest.error["trace"] == ("a",)
        with pytest.raises(TypeError):
            manifest.error["details"]["step"] = 3  # type: ignore[index]

    def test_file_entries_are_read_only(self) -> None:
        entry = {"sha1": "abc", "size": 10, "compression": "gzip"}
        manifest = Manifest(name="x", version="1", files=[entry])
        entry["size"] = 20
        assert manifest.files[0]["size"] == 10
        with pytest.raises(TypeError):
            manifest.files[0]["size"] = 30  # type: ignore[index]

    def test_platform_requirements_are_read_only(self) -> None:
        platform = {"7.0": "20141030T081701Z"}
        requirements = ImageRequirements(min_platform=platform, max_platform=platform)
        platform["7.0"] = "changed"
        assert requirements.min_platform == {"7.0": "20141030T081701Z"}
        with pytest.raises(TypeError):
            requirements.min_platform["7.0"] = "x"  # type: ignore[index]
        with pytest.raises(TypeError):
            requirements.max_platform["8.0"] = "x"  # type: ignore[index]

    def test_frozen_mappings_encode_and_round_trip(self) -> None:
        manifest = Manifest(
            name="x",
            version="1",
            error={"message": "boom", "trace": ["a", {"b": 1}]},
            tags={"role": "db"},
            requirements=ImageRequirements(min_platform={"7.0": "20141030T081701Z"}),
        )
        data = manifest_to_wire(manifest)
        assert data["error"] == {"message": "boom", "trace": ["a", {"b": 1}]}
        assert data["requirements"] == {"min_platform": {"7.0": "20141030T081701Z"}}
        assert json.loads(json.dumps(data)) == data
        assert manifest_from_wire(data) == manifest

    def test_format_version_cannot_change(self) -> None:
        with pytest.raises(ValidationError):
            Manifest(name="x", version="1", format_version=3)

    def test_is_vm_image(self, minimal_manifest: Manifest, vm_manifest: Manifest) -> None:
        assert not minimal_manifest.is_vm_image
        assert vm_manifest.is_vm_image

    def test_image_files_parses_loose_entries(self) -> None:
        manifest = Manifest(
            name="x",
            version="1",
            files=[
                {
                    "sha1": "abc",
                    "size": 10,
                    "compression": "bzip2",
                    "uncompressedDigest": "sha256:00",
                    "admin_only": "ignored",
                }
            ],
        )
        (image_file,) = manifest.image_files()
        assert isinstance(image_file, ImageFile)
        assert image_file.compression is ImageFileCompression.BZIP2
        assert image_file.uncompressed_digest == "sha256:00"

    def test_image_files_rejects_unknown_compression(self) -> None:
        manifest = Manifest(
            name="x",
            version="1",
            files=[{"sha1": "abc", "size": 10, "compression": "xz"}],
        )
        with pytest.raises(ManifestDecodeError, match="compression"):
            manifest.image_files()

    def test_published_at_normalized_to_utc(self) -> None:
        manifest = Manifest(name="x", version="1", published_at="2024-01-01T02:00:00+02:00")
        assert manifest.published_at is not None
        assert manifest.published_at.utcoffset().total_seconds() == 0
        assert manifest.published_at.hour == 0

    def test_naive_published_at_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Manifest(name="x", version="1", published_at="2024-01-01T00:00:00")
