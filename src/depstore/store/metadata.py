"""Package identity from an extracted workspace.

The descriptor is ``package.json`` at the workspace root; only ``name`` and
``version`` are read.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from depstore.core.errors import MetadataMissingError

from .checksums import MANIFEST_SUFFIX

DESCRIPTOR_NAME = "package.json"


@dataclass(frozen=True)
class PackageMetadata:
    name: str
    version: str

    def as_dict(self) -> dict[str, str]:
        return {"name": self.name, "version": self.version}


def _check_store_segment(field: str, value: str) -> None:
    """Reject values that would place the slot outside its own directory."""
    if "\\" in value:
        raise MetadataMissingError(f"Invalid package {field}: {value!r} (backslash)")
    if "/" in value:
        raise MetadataMissingError(f"Invalid package {field}: {value!r} (path separator)")
    if value in (".", ".."):
        raise MetadataMissingError(f"Invalid package {field}: {value!r} (relative segment)")


def _check_name(name: str) -> None:
    # Scoped names nest one level deeper: store/@scope/pkg/<version>.
    if not name.startswith("@"):
        _check_store_segment("name", name)
        return
    scope, sep, pkg = name.partition("/")
    if not sep or scope == "@" or not pkg:
        raise MetadataMissingError(
            f"Invalid package name: {name!r} (scoped names must be @scope/pkg)"
        )
    _check_store_segment("name", scope)
    _check_store_segment("name", pkg)


def _check_version(version: str) -> None:
    _check_store_segment("version", version)
    if version.endswith(MANIFEST_SUFFIX):
        raise MetadataMissingError(
            f"Invalid package version: {version!r} (clashes with manifest file names)"
        )


def read_package_metadata(workspace_dir: Path) -> PackageMetadata:
    """Read ``name`` and ``version`` from the workspace descriptor.

    Values are taken verbatim: surrounding whitespace is an error, not
    something to trim.

    Raises:
        MetadataMissingError: Descriptor missing, unreadable, malformed, or
            without a usable name/version.
    """
    descriptor = workspace_dir / DESCRIPTOR_NAME
    if not descriptor.is_file():
        raise MetadataMissingError(
            f"Package descriptor not found: {DESCRIPTOR_NAME}",
            "The archive must contain package.json at its root",
        )

    try:
        data = json.loads(descriptor.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValueError) as e:
        raise MetadataMissingError(f"Cannot read {DESCRIPTOR_NAME}: {e}") from e

    if not isinstance(data, dict):
        raise MetadataMissingError(f"{DESCRIPTOR_NAME} must contain a JSON object")

    values: dict[str, str] = {}
    for field in ("name", "version"):
        value = data.get(field)
        if not isinstance(value, str) or not value:
            raise MetadataMissingError(f"{DESCRIPTOR_NAME} has no valid '{field}'")
        if value != value.strip():
            raise MetadataMissingError(
                f"Invalid package {field}: {value!r} (leading or trailing whitespace)"
            )
        values[field] = value

    _check_name(values["name"])
    _check_version(values["version"])

    return PackageMetadata(name=values["name"], version=values["version"])
