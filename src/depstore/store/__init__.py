"""Package store: metadata, checksum manifests and the slot installer."""

from .checksums import (
    HASH_ALGORITHM,
    MANIFEST_SUFFIX,
    ManifestDiff,
    build_manifest,
    compare_manifest,
    file_digest,
    load_manifest,
    manifest_key,
    serialize_manifest,
    write_manifest,
)
from .installer import InstallResult, StoreInstaller
from .metadata import DESCRIPTOR_NAME, PackageMetadata, read_package_metadata

__all__ = [
    "DESCRIPTOR_NAME",
    "HASH_ALGORITHM",
    "MANIFEST_SUFFIX",
    "InstallResult",
    "ManifestDiff",
    "PackageMetadata",
    "StoreInstaller",
    "build_manifest",
    "compare_manifest",
    "file_digest",
    "load_manifest",
    "manifest_key",
    "read_package_metadata",
    "serialize_manifest",
    "write_manifest",
]
