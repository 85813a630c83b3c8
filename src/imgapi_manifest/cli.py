"""CLI entry point for imgapi-manifest."""

from __future__ import annotations

import sys
from typing import IO, Optional

import click

from . import __version__
from .core import ImageVMPropertiesBuilder, ManifestBuilder
from .errors import ManifestBuilderError, ManifestDecodeError
from .models import DiskDrivers, ImageOs, ImageType, NetDrivers
from .wire import dumps, from_wire_string, loads_many


def _choices(enum_type: type) -> click.Choice:
    return click.Choice([member.value for member in enum_type])


@click.group()
@click.version_option(version=__version__, prog_name="imgapi-manifest")
def main() -> None:
    """imgapi-manifest — build and validate IMGAPI image manifests."""


@main.command("validate")
@click.argument("manifest_file", type=click.File("r"))
def validate_command(manifest_file: IO[str]) -> None:
    """Validate a manifest, or a JSON array of manifests, read from MANIFEST_FILE."""
    try:
        manifests = loads_many(manifest_file.read())
    except ManifestDecodeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    for manifest in manifests:
        click.echo(f"OK {manifest.name}@{manifest.version}")


@main.command("list")
@click.argument("manifest_file", type=click.File("r"))
def list_command(manifest_file: IO[str]) -> None:
    """List the manifests in MANIFEST_FILE as a table."""
    try:
        manifests = loads_many(manifest_file.read())
    except ManifestDecodeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo("NAME\tVERSION\tUUID\tTYPE\tPUBLISHED_AT")
    for manifest in manifests:
        published_at = (
            manifest.published_at.isoformat() if manifest.published_at else "None"
        )
        click.echo(
            f"{manifest.name}\t{manifest.version}\t{manifest.uuid}\t"
            f"{manifest.image_type}\t{published_at}"
        )


@main.command("new")
@click.option("--name", required=True, help="Image name.")
@click.option("--version", "image_version", required=True, help="Image version.")
@click.option(
    "--type",
    "image_type",
    type=_choices(ImageType),
    default=ImageType.default().value,
    show_default=True,
    help="Image type.",
)
@click.option(
    "--os",
    "image_os",
    type=_choices(ImageOs),
    default=ImageOs.default().value,
    show_default=True,
    help="OS family.",
)
@click.option("--description", default=None, help="Short description.")
@click.option("--homepage", default=None, help="Homepage URL.")
@click.option("--nic-driver", type=_choices(NetDrivers), default=None, help="VM NIC driver.")
@click.option("--disk-driver", type=_choices(DiskDrivers), default=None, help="VM disk driver.")
@click.option("--cpu-type", default=None, help="VM QEMU CPU model.")
@click.option("--image-size", type=int, default=None, help="VM disk size in MiB.")
@click.option("--tag", "tags", multiple=True, help="Tag as KEY=VALUE; repeatable.")
def new_command(
    name: str,
    image_version: str,
    image_type: str,
    image_os: str,
    description: Optional[str],
    homepage: Optional[str],
    nic_driver: Optional[str],
    disk_driver: Optional[str],
    cpu_type: Optional[str],
    image_size: Optional[int],
    tags: tuple[str, ...],
) -> None:
    """Build a new manifest and print its wire JSON."""
    builder = (
        ManifestBuilder()
        .name(name)
        .version(image_version)
        .image_type(from_wire_string(ImageType, image_type))
        .os(from_wire_string(ImageOs, image_os))
    )
    if description is not None:
        builder.description(description)
    if homepage is not None:
        builder.homepage(homepage)
    if tags:
        parsed = {}
        for tag in tags:
            key, sep, value = tag.partition("=")
            if not sep or not key:
                click.echo(f"Error: invalid --tag {tag!r}, expected KEY=VALUE.", err=True)
                sys.exit(1)
            parsed[key] = value
        builder.tags(parsed)

    vm_options = (nic_driver, disk_driver, cpu_type, image_size)
    try:
        if any(option is not None for option in vm_options):
            vm_builder = ImageVMPropertiesBuilder()
            if nic_driver is not None:
                vm_builder.nic_driver(from_wire_string(NetDrivers, nic_driver))
            if disk_driver is not None:
                vm_builder.disk_driver(from_wire_string(DiskDrivers, disk_driver))
            if cpu_type is not None:
                vm_builder.cpu_type(cpu_type)
            if image_size is not None:
                vm_builder.image_size(image_size)
            builder.vm_image_properties(vm_builder)
        manifest = builder.build()
    except ManifestBuilderError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(dumps(manifest, indent=2))


if __name__ == "__main__":
    main()
