"""Archive format detection by file extension.

Detection never touches the filesystem, so an unsupported archive is
rejected before any directory is created.
"""

from __future__ import annotations

from pathlib import Path

from depstore.core.errors import UnsupportedFormatError

from .types import ArchiveFormat, PackageArchive

_SUFFIX_MAP: dict[str, ArchiveFormat] = {
    "gz": ArchiveFormat.TAR_GZ,
    "tgz": ArchiveFormat.TAR_GZ,
    "zip": ArchiveFormat.ZIP,
}


def archive_extension(path: str | Path) -> str:
    """Return the last extension of ``path`` without the leading dot."""
    return Path(path).suffix[1:]


def supported_extensions() -> list[str]:
    return sorted(_SUFFIX_MAP)


def detect_archive(path: str | Path) -> PackageArchive:
    """Classify ``path`` by its extension.

    Raises:
        UnsupportedFormatError: If the extension is not recognized.
    """
    ext = archive_extension(path)
    fmt = _SUFFIX_MAP.get(ext.lower())
    if fmt is None:
        raise UnsupportedFormatError(ext)
    return PackageArchive(path=Path(path), extension=ext, format=fmt)
