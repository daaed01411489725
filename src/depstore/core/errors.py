"""Error handling with friendly messages."""

from __future__ import annotations

from pathlib import Path


class DepStoreError(Exception):
    """Base exception for all depstore errors."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class ConfigError(DepStoreError):
    """Configuration error."""

    pass


class ImportStageError(DepStoreError):
    """Failure of one import pipeline stage.

    The ``stage`` attribute names the stage that failed so callers can report
    which step of an import went wrong.
    """

    stage: str = "import"

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        *,
        stage: str | None = None,
    ) -> None:
        super().__init__(message, suggestion)
        if stage is not None:
            self.stage = stage


class UnsupportedFormatError(ImportStageError):
    """Archive extension has no registered extractor."""

    stage = "select_extractor"

    def __init__(self, extension: str) -> None:
        self.extension = extension
        super().__init__(
            f"{extension} file is not supported!",
            "Supported archive extensions: .zip, .gz, .tgz",
        )


class ExtractionError(ImportStageError):
    """Archive could not be decompressed into the workspace."""

    stage = "extract"

    def __init__(self, archive_path: str | Path, suggestion: str | None = None) -> None:
        self.archive_path = str(archive_path)
        super().__init__(
            f"{archive_path} decompress failed!",
            suggestion or "Check that the archive is complete and not corrupted",
        )


class MetadataMissingError(ImportStageError):
    """Extracted workspace does not hold a valid package descriptor."""

    stage = "read_metadata"


class HashError(ImportStageError):
    """A file could not be hashed while building the checksum manifest."""

    stage = "build_manifest"

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        *,
        installed_dir: Path | None = None,
    ) -> None:
        self.installed_dir = installed_dir
        if suggestion is None and installed_dir is not None:
            suggestion = (
                f"Package is installed at '{installed_dir}' without a checksum manifest; "
                "local modification checks will not work until it is rebuilt"
            )
        super().__init__(message, suggestion)


class StoreFilesystemError(ImportStageError):
    """Directory creation, rename, write or delete failed in the store."""

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        *,
        stage: str = "install",
        installed_dir: Path | None = None,
    ) -> None:
        self.installed_dir = installed_dir
        super().__init__(message, suggestion, stage=stage)
