"""Import a local package archive into the store.

Stages run strictly in order and stop at the first failure:

    select_extractor -> extract -> install

``install`` covers reading metadata, claiming the slot, moving the workspace
and writing the checksum manifest. Nothing is retried. If the manifest step
fails after the move, the package stays installed without a manifest and the
error says so.
"""

from __future__ import annotations

import os
import time
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from depstore.archives import ExtractorRegistry, detect_archive
from depstore.archives.types import Extractor, PackageArchive
from depstore.context import ProjectContext
from depstore.core.diagnostics import build_envelope
from depstore.core.errors import DepStoreError, ExtractionError, StoreFilesystemError
from depstore.core.events import EventBus, get_event_bus
from depstore.core.logging import get_logger
from depstore.store import ops
from depstore.store.installer import InstallResult, StoreInstaller
from depstore.store.metadata import PackageMetadata

log = get_logger(__name__)

WORKSPACE_PREFIX = ".import-"


def new_workspace_name(token: str) -> str:
    """Return the workspace directory name for a uniqueness token."""
    if not token or "/" in token or "\\" in token or token in (".", ".."):
        raise ValueError(f"Invalid workspace token: {token!r}")
    return f"{WORKSPACE_PREFIX}{token}"


def default_token_source() -> str:
    return uuid.uuid4().hex


class ImportPipeline:
    """Orchestrates one archive import per ``run`` call."""

    def __init__(
        self,
        context: ProjectContext,
        *,
        registry: ExtractorRegistry | None = None,
        token_source: Callable[[], str] | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self.context = context
        self.registry = registry or ExtractorRegistry.default(
            strip_single_root=context.strip_single_root
        )
        self.token_source = token_source or default_token_source
        self.bus = bus or get_event_bus()
        self.installer = StoreInstaller(
            context.get_store_dir(), chunk_size=context.hash_chunk_size
        )

    def run(self, archive_path: str | Path) -> PackageMetadata:
        """Import ``archive_path`` and return the package identity."""
        return self.run_detailed(archive_path).metadata

    def run_detailed(self, archive_path: str | Path) -> InstallResult:
        archive_path = Path(archive_path)
        base: dict[str, Any] = {"archive": str(archive_path)}

        with self._observe_stage("select_extractor", base) as summary:
            archive = detect_archive(archive_path)
            extractor = self.registry.for_archive(archive)
            summary.update({"format": archive.format.value, "extractor": extractor.name})

        workspace = self.context.get_workspace_dir() / new_workspace_name(self.token_source())
        base = dict(base, workspace=workspace.name)
        try:
            with self._observe_stage("extract", base):
                self._extract(extractor, archive, workspace)

            with self._observe_stage("install", base) as summary:
                result = self.installer.install(workspace)
                summary.update(
                    {
                        "name": result.metadata.name,
                        "version": result.metadata.version,
                        "installed": result.installed,
                    }
                )
        except Exception:
            self._discard_workspace(workspace)
            raise

        return result

    def _extract(self, extractor: Extractor, archive: PackageArchive, workspace: Path) -> None:
        try:
            extractor.extract(archive.path, workspace)
        except DepStoreError:
            raise
        except Exception as e:
            raise ExtractionError(archive.path) from e

        # Extractors may "succeed" without producing anything.
        if not workspace.is_dir():
            raise ExtractionError(
                archive.path, "Extractor reported success but produced no output directory"
            )

    def _discard_workspace(self, workspace: Path) -> None:
        if not os.path.lexists(workspace):
            return
        try:
            ops.remove_tree(workspace)
        except StoreFilesystemError as e:
            log.warning(f"workspace cleanup failed workspace={str(workspace)!r} error={e.message}")

    @contextmanager
    def _observe_stage(self, stage: str, base: dict[str, Any]) -> Iterator[dict[str, Any]]:
        operation = f"import.{stage}"
        start = time.perf_counter()
        start_data = dict(base, stage=stage)
        self.bus.publish(
            "import.stage.start",
            build_envelope(
                event="import.stage.start",
                component="pipeline",
                operation=operation,
                data=start_data,
            ),
        )

        summary: dict[str, Any] = {}
        try:
            yield summary
        except Exception as e:
            duration_ms = int((time.perf_counter() - start) * 1000)
            end_data = dict(start_data)
            end_data.update(
                {
                    "status": "failed",
                    "duration_ms": duration_ms,
                    "error_type": type(e).__name__,
                    "error_message": getattr(e, "message", str(e)),
                }
            )
            self.bus.publish(
                "import.stage.end",
                build_envelope(
                    event="import.stage.end",
                    component="pipeline",
                    operation=operation,
                    data=end_data,
                ),
            )
            log.warning(
                f"{operation} status=failed duration_ms={duration_ms} "
                f"archive={base.get('archive')!r} error_type={type(e).__name__}"
            )
            raise
        else:
            duration_ms = int((time.perf_counter() - start) * 1000)
            end_data = dict(start_data)
            end_data.update(summary)
            end_data.update({"status": "succeeded", "duration_ms": duration_ms})
            self.bus.publish(
                "import.stage.end",
                build_envelope(
                    event="import.stage.end",
                    component="pipeline",
                    operation=operation,
                    data=end_data,
                ),
            )
            summary_parts = [
                "status=succeeded",
                f"duration_ms={duration_ms}",
                f"archive={base.get('archive')!r}",
            ]
            summary_parts.extend(f"{k}={v!r}" for k, v in summary.items())
            log.verbose(f"{operation} " + " ".join(summary_parts))


def import_from_file(
    context: ProjectContext,
    archive_path: str | Path,
    **kwargs: Any,
) -> PackageMetadata:
    """Import a local archive into ``context``'s store.

    Keyword arguments are passed to ImportPipeline.
    """
    return ImportPipeline(context, **kwargs).run(archive_path)
