"""Shared test fixtures for imgapi-manifest."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from imgapi_manifest.core import (
    ImageFileBuilder,
    ImageRequirementsBuilder,
    ManifestBuilder,
    ManifestOptions,
    RequirementNetworksBuilder,
    build_manifest,
    vm_image_properties,
)
from imgapi_manifest.models import (
    DiskDrivers,
    ImageFileCompression,
    ImageRequirementBootRom,
    ImageState,
    ImageType,
    Manifest,
    NetDrivers,
)

ORIGIN_UUID = "1f32508c-e6e9-11e2-8b53-6f0c6c1a1c8b"
ACL_UUID = "930896af-bf8c-48d4-885c-6573a94b1853"
IMAGE_UUID = "c2c31b00-1d60-11e9-9a77-ff9f06554b0f"
OWNER_UUID = "9dce1460-0c4c-4417-ab8b-25ca478c5a78"


# ---------------------------------------------------------------------------
# Built manifests
# ---------------------------------------------------------------------------


@pytest.fixture()
def minimal_manifest() -> Manifest:
    return ManifestBuilder().name("test_manifest").version("v1.0").build()


@pytest.fixture()
def vm_manifest() -> Manifest:
    return (
        ManifestBuilder()
        .name("blubber")
        .version("0.1.0")
        .image_type(ImageType.ZVOL)
        .vm_image_properties(
            vm_image_properties(NetDrivers.VIRTIO, DiskDrivers.VIRTIO, "default", 0)
        )
        .build()
    )


@pytest.fixture()
def full_manifest() -> Manifest:
    """A manifest with every settable field populated."""
    image_file = (
        ImageFileBuilder()
        .sha1("97f20b32c2016782257176fb58a35e5044f05840")
        .size(46399322)
        .compression(ImageFileCompression.GZIP)
        .dataset_guid("3921564453543495329")
        .digest("sha256:8bd31e4a6ad1d3c4a4b7e0a5e1b0c1c6e2a0bd4bd3c9a0d7d4f1e6c0a2b3c4d5")
        .uncompressed_digest("sha256:0f1c2b3a4d5e6f708192a3b4c5d6e7f8091a2b3c4d5e6f708192a3b4c5d6e7f8")
        .build()
    )
    requirements = (
        ImageRequirementsBuilder()
        .networks(
            [RequirementNetworksBuilder().name("net0").description("public")]
        )
        .brand("bhyve")
        .ssh_key(True)
        .min_ram(1024)
        .max_ram(65536)
        .min_platform({"7.0": "20141030T081701Z"})
        .bootrom(ImageRequirementBootRom.UEFI)
    )
    options = ManifestOptions(
        description="Ubuntu 22.04 LTS (bhyve)",
        homepage="https://docs.tritondatacenter.com/public-cloud/instances/virtual-machines/images/linux/ubuntu-certified",
        eula="https://example.com/eula",
        icon=True,
        state=ImageState.FAILED,
        error={"message": "snapshot failed", "code": "PrepareImageError"},
        disabled=True,
        public=True,
        published_at=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        image_type=ImageType.ZVOL,
        os="linux",
        origin=ORIGIN_UUID,
        files=[image_file],
        acl=[ACL_UUID],
        requirements=requirements,
        users=["root", "admin"],
        billing_tags=["small"],
        traits=["ssd"],
        tags={"role": "os", "family": "ubuntu"},
        generate_password=False,
        inherited_directories=["/opt"],
        channels=["release", "dev"],
        vm_image_properties=vm_image_properties("virtio", "sata", "host", 10240),
    )
    return build_manifest("ubuntu-22.04", "20240102", options)


# ---------------------------------------------------------------------------
# Wire payloads
# ---------------------------------------------------------------------------


@pytest.fixture()
def wire_manifest() -> dict[str, Any]:
    """A manifest as served by a public IMGAPI ListImages endpoint."""
    return {
        "v": 2,
        "uuid": IMAGE_UUID,
        "owner": OWNER_UUID,
        "name": "base-64-lts",
        "version": "18.4.0",
        "state": "active",
        "disabled": False,
        "public": True,
        "published_at": "2019-01-21T18:32:54.563Z",
        "type": "zone-dataset",
        "os": "smartos",
        "files": [
            {
                "sha1": "5d4bcfc3cbe2a4d1d9b9d7b8f2c0ea7d0fd6d2ff",
                "size": 182213452,
                "compression": "gzip",
                "stor": "manta",
            }
        ],
        "description": "A 64-bit SmartOS image with just essential packages installed.",
        "homepage": "https://docs.joyent.com/images/smartos/base",
        "requirements": {
            "min_platform": {"7.0": "20141030T081701Z"},
            "networks": [{"name": "net0", "description": "public"}],
        },
        "tags": {"role": "os", "group": "base-64-lts"},
    }


@pytest.fixture()
def wire_vm_manifest(wire_manifest: dict[str, Any]) -> dict[str, Any]:
    data = dict(wire_manifest)
    data.update(
        {
            "name": "ubuntu-certified-18.04",
            "type": "zvol",
            "os": "linux",
            "nic_driver": "virtio",
            "disk_driver": "virtio",
            "cpu_type": "host",
            "image_size": 10240,
        }
    )
    return data


@pytest.fixture()
def manifest_file(tmp_path: Path, wire_manifest: dict[str, Any], wire_vm_manifest: dict[str, Any]) -> Path:
    """A ListImages-style JSON array written to disk."""
    f = tmp_path / "images.json"
    f.write_text(json.dumps([wire_manifest, wire_vm_manifest]), encoding="utf-8")
    return f
