"""Archive capability types.

All public strings and paths must be ASCII-safe in logs.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Protocol, runtime_checkable


class ArchiveFormat(StrEnum):
    ZIP = "zip"
    TAR_GZ = "tar.gz"


@dataclass(frozen=True)
class PackageArchive:
    """A local archive selected for import."""

    path: Path
    extension: str  # as written in the file name, without the dot
    format: ArchiveFormat


@runtime_checkable
class Extractor(Protocol):
    """Decompresses one archive format into a destination directory.

    Implementations create ``dest_dir`` themselves and raise ExtractionError
    on failure.
    """

    name: str

    def extract(self, archive_path: Path, dest_dir: Path) -> None: ...
