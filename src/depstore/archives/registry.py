"""Static extractor registry.

Adding a format means adding a table entry (and a suffix in ``detect``), not
another branch in the pipeline.
"""

from __future__ import annotations

from collections.abc import Mapping

from depstore.core.errors import UnsupportedFormatError

from .extractors import TarGzExtractor, ZipExtractor
from .types import ArchiveFormat, Extractor, PackageArchive


class ExtractorRegistry:
    """Immutable mapping from archive format to extractor."""

    def __init__(self, table: Mapping[ArchiveFormat, Extractor]) -> None:
        self._table: dict[ArchiveFormat, Extractor] = dict(table)

    @classmethod
    def default(cls, *, strip_single_root: bool = True) -> ExtractorRegistry:
        return cls(
            {
                ArchiveFormat.ZIP: ZipExtractor(strip_single_root=strip_single_root),
                ArchiveFormat.TAR_GZ: TarGzExtractor(strip_single_root=strip_single_root),
            }
        )

    def formats(self) -> list[ArchiveFormat]:
        return sorted(self._table, key=lambda f: f.value)

    def with_extractor(self, fmt: ArchiveFormat, extractor: Extractor) -> ExtractorRegistry:
        """Return a copy of this registry with ``fmt`` mapped to ``extractor``."""
        table = dict(self._table)
        table[fmt] = extractor
        return ExtractorRegistry(table)

    def for_archive(self, archive: PackageArchive) -> Extractor:
        try:
            return self._table[archive.format]
        except KeyError:
            raise UnsupportedFormatError(archive.extension) from None


DEFAULT_EXTRACTORS = ExtractorRegistry.default()
