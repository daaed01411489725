"""Archive capability package."""

from .detect import archive_extension, detect_archive, supported_extensions
from .extractors import TarGzExtractor, ZipExtractor
from .registry import DEFAULT_EXTRACTORS, ExtractorRegistry
from .types import ArchiveFormat, Extractor, PackageArchive

__all__ = [
    "ArchiveFormat",
    "DEFAULT_EXTRACTORS",
    "Extractor",
    "ExtractorRegistry",
    "PackageArchive",
    "TarGzExtractor",
    "ZipExtractor",
    "archive_extension",
    "detect_archive",
    "supported_extensions",
]
