"""Install an extracted workspace into its store slot.

Layout under the store root:

    <name>/<version>/        installed package contents
    <name>/<version>.md5     checksum manifest (JSON)

A slot that exists is final. A later import of the same (name, version)
discards its workspace and reports the existing package.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from depstore.core.logging import get_logger

from . import ops
from .checksums import DEFAULT_CHUNK_SIZE, MANIFEST_SUFFIX, build_manifest, write_manifest
from .metadata import PackageMetadata, read_package_metadata

log = get_logger(__name__)


@dataclass(frozen=True)
class InstallResult:
    """Outcome of one install call.

    ``installed=False`` means another import already owns the slot. The
    owner may still be moving files or writing the manifest, and if its
    move fails it releases the slot again. Use StoreInstaller.is_complete
    to tell a finished install from one in progress.
    """

    metadata: PackageMetadata
    slot_dir: Path
    manifest_path: Path
    installed: bool  # False: slot already owned, workspace discarded


class StoreInstaller:
    """Moves validated workspaces into ``store/<name>/<version>``."""

    def __init__(self, store_dir: Path, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self.store_dir = Path(store_dir)
        self.chunk_size = chunk_size

    def slot_path(self, metadata: PackageMetadata) -> Path:
        return self.store_dir / metadata.name / metadata.version

    def manifest_path(self, metadata: PackageMetadata) -> Path:
        return self.store_dir / metadata.name / f"{metadata.version}{MANIFEST_SUFFIX}"

    def is_complete(self, metadata: PackageMetadata) -> bool:
        """True once the slot is populated and its manifest has been written."""
        return self.slot_path(metadata).is_dir() and self.manifest_path(metadata).is_file()

    def install(self, workspace: Path) -> InstallResult:
        """Install ``workspace`` or discard it if the slot is already taken.

        Steps: read metadata, claim the slot, move the workspace in, build and
        persist the manifest. A manifest failure leaves the package installed
        without a manifest; the raised error carries ``installed_dir``.

        Raises:
            MetadataMissingError: Workspace has no valid descriptor (workspace
                is left in place).
            StoreFilesystemError: Directory creation, move, delete or manifest
                write failed.
            HashError: A file in the installed slot could not be hashed.
        """
        metadata = read_package_metadata(workspace)
        target = self.slot_path(metadata)
        manifest_path = self.manifest_path(metadata)

        ops.ensure_dir(target.parent)
        if not ops.claim_dir(target):
            log.info(
                f"install skipped name={metadata.name!r} version={metadata.version!r} "
                f"reason=already_installed complete={self.is_complete(metadata)}"
            )
            ops.remove_tree(workspace)
            return InstallResult(
                metadata=metadata,
                slot_dir=target,
                manifest_path=manifest_path,
                installed=False,
            )

        ops.move_dir_onto_claim(workspace, target)
        log.verbose(f"install moved workspace={workspace.name!r} slot={str(target)!r}")

        manifest = build_manifest(target, chunk_size=self.chunk_size)
        write_manifest(manifest_path, manifest, installed_dir=target)
        log.info(
            f"install done name={metadata.name!r} version={metadata.version!r} "
            f"files={len(manifest)}"
        )
        return InstallResult(
            metadata=metadata,
            slot_dir=target,
            manifest_path=manifest_path,
            installed=True,
        )
