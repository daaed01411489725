"""Per-file checksum manifest for installed packages.

The manifest maps each regular file under a slot (posix relative path) to
its md5 hex digest. It is persisted as ``store/<name>/<version>.md5`` and
later compared against the slot to find local modifications.
"""

from __future__ import annotations

import hashlib
import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from depstore.core.errors import HashError

from .ops import atomic_write_bytes

HASH_ALGORITHM = "md5"
MANIFEST_SUFFIX = ".md5"
DEFAULT_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class ManifestDiff:
    """Difference between a manifest and the files currently on disk."""

    modified: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    added: list[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not (self.modified or self.missing or self.added)


def file_digest(path: Path, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Compute the md5 checksum of a file and return the hex string."""
    h = hashlib.new(HASH_ALGORITHM)
    with open(path, "rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            h.update(chunk)
    return h.hexdigest()


def manifest_key(rel: str) -> str:
    """Posix manifest key for a relative path.

    Names that are not valid UTF-8 (decoded by the OS or tarfile with
    surrogateescape) keep their raw bytes as ``\\xNN`` escapes.
    """
    return os.fsencode(rel).decode("utf-8", "backslashreplace").replace(os.sep, "/")


def _regular_files(base: Path) -> list[tuple[str, Path]]:
    found: list[tuple[str, Path]] = []
    for p in base.rglob("*"):
        if p.is_file() and not p.is_symlink():
            found.append((manifest_key(str(p.relative_to(base))), p))
    return sorted(found)


def build_manifest(installed_dir: Path, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> dict[str, str]:
    """Hash every regular file under ``installed_dir``.

    Keys are posix relative paths in sorted order, independent of filesystem
    enumeration order and host path separator.

    Raises:
        HashError: The directory or one of its files could not be read.
    """
    if not installed_dir.is_dir():
        raise HashError(f"Not a directory: {installed_dir}")

    manifest: dict[str, str] = {}
    try:
        for key, path in _regular_files(installed_dir):
            manifest[key] = file_digest(path, chunk_size=chunk_size)
    except OSError as e:
        raise HashError(
            f"Cannot hash files under '{installed_dir}': {e}", installed_dir=installed_dir
        ) from e
    return manifest


def serialize_manifest(manifest: dict[str, str]) -> bytes:
    """Pretty-printed JSON (4-space indent), keys sorted, no trailing newline."""
    return json.dumps(manifest, indent=4, sort_keys=True, ensure_ascii=False).encode("utf-8")


def write_manifest(
    path: Path, manifest: dict[str, str], *, installed_dir: Path | None = None
) -> None:
    try:
        data = serialize_manifest(manifest)
    except UnicodeError as e:
        raise HashError(f"Cannot encode manifest '{path}': {e}", installed_dir=installed_dir) from e
    atomic_write_bytes(path, data, installed_dir=installed_dir)


def load_manifest(path: Path) -> dict[str, str]:
    """Load a persisted manifest.

    Raises:
        HashError: The manifest is missing, unreadable or not a str->str object.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValueError) as e:
        raise HashError(f"Cannot read manifest '{path}': {e}") from e

    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise HashError(f"Invalid manifest '{path}': expected an object of path -> hash")
    return dict(sorted(data.items()))


def compare_manifest(
    installed_dir: Path,
    manifest: dict[str, str],
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> ManifestDiff:
    """Compare ``manifest`` with the current contents of ``installed_dir``."""
    current = build_manifest(installed_dir, chunk_size=chunk_size)
    modified = [rel for rel, digest in current.items() if manifest.get(rel, digest) != digest]
    missing = [rel for rel in manifest if rel not in current]
    added = [rel for rel in current if rel not in manifest]
    return ManifestDiff(modified=sorted(modified), missing=sorted(missing), added=sorted(added))
