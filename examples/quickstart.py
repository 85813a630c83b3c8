"""
imgapi-manifest quickstart — build, encode, decode and validate manifests.

Run directly:

    python examples/quickstart.py
"""

from __future__ import annotations

import json


# ---------------------------------------------------------------------------
# Demo 1: Build a minimal manifest and look at the defaults
# ---------------------------------------------------------------------------

def demo_minimal_manifest() -> None:
    """Only name and version are required; everything else is defaulted."""
    print("\n=== Demo 1: Minimal manifest ===")

    from imgapi_manifest.core import ManifestBuilder

    manifest = ManifestBuilder().name("test_manifest").version("v1.0").build()
    print(f"  Name       : {manifest.name}")
    print(f"  Version    : {manifest.version}")
    print(f"  Format     : v{manifest.format_version}")
    print(f"  UUID       : {manifest.uuid}")
    print(f"  State      : {manifest.state}")
    print(f"  Type       : {manifest.image_type}")
    print(f"  OS         : {manifest.os}")


# ---------------------------------------------------------------------------
# Demo 2: A zvol image with VM properties, encoded to the wire form
# ---------------------------------------------------------------------------

def demo_vm_manifest() -> str:
    """VM properties are flattened into the top-level wire object."""
    print("\n=== Demo 2: zvol manifest on the wire ===")

    from imgapi_manifest.core import ManifestOptions, build_manifest, vm_image_properties
    from imgapi_manifest.models import DiskDrivers, ImageType, NetDrivers
    from imgapi_manifest.wire import dumps

    manifest = build_manifest(
        "blubber",
        "0.1.0",
        ManifestOptions(
            image_type=ImageType.ZVOL,
            os="linux",
            tags={"role": "db"},
            vm_image_properties=vm_image_properties(
                NetDrivers.VIRTIO, DiskDrivers.VIRTIO, "default", 10240
            ),
        ),
    )
    text = dumps(manifest, indent=2)
    for line in text.splitlines():
        print(f"    {line}")
    return text


# ---------------------------------------------------------------------------
# Demo 3: Decode it back
# ---------------------------------------------------------------------------

def demo_decode(text: str) -> None:
    print("\n=== Demo 3: Decode ===")

    from imgapi_manifest.wire import loads

    manifest = loads(text)
    props = manifest.vm_image_properties
    print(f"  {manifest.name}@{manifest.version} is a VM image: {manifest.is_vm_image}")
    if props is not None:
        print(f"  NIC driver : {props.nic_driver}")
        print(f"  Disk size  : {props.image_size} MiB")


# ---------------------------------------------------------------------------
# Demo 4: Errors
# ---------------------------------------------------------------------------

def demo_errors() -> None:
    print("\n=== Demo 4: Errors ===")

    from imgapi_manifest.core import ImageVMPropertiesBuilder, ManifestBuilder
    from imgapi_manifest.errors import ManifestBuilderError, ManifestDecodeError
    from imgapi_manifest.wire import loads, manifest_to_wire

    try:
        ManifestBuilder().version("1.0").build()
    except ManifestBuilderError as exc:
        print(f"  Builder    : {exc}")

    try:
        ImageVMPropertiesBuilder().nic_driver("virtio").disk_driver("sata").cpu_type("host").build()
    except ManifestBuilderError as exc:
        print(f"  VM builder : {exc}")

    payload = manifest_to_wire(ManifestBuilder().name("x").version("1").build())
    try:
        loads(json.dumps({**payload, "type": "docker"}))
    except ManifestDecodeError as exc:
        print(f"  Decode     : {exc}")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    print("imgapi-manifest quickstart demo")
    print("=" * 40)

    demo_minimal_manifest()
    text = demo_vm_manifest()
    demo_decode(text)
    demo_errors()

    print("\n" + "=" * 40)
    print("All demos completed successfully.")


if __name__ == "__main__":
    main()
