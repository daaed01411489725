"""Project context: where the store and import workspaces live."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from depstore.core.config import ConfigResolver
from depstore.core.diagnostics import install_jsonl_sink, is_diagnostics_enabled
from depstore.core.logging import apply_logging_policy, set_colors
from depstore.store.checksums import DEFAULT_CHUNK_SIZE


@dataclass(frozen=True)
class ProjectContext:
    """Store locations and import options for one project.

    ``workspace_dir`` defaults to the store directory so the final install is
    a same-filesystem rename.
    """

    store_dir: Path
    workspace_dir: Path | None = None
    strip_single_root: bool = True
    hash_chunk_size: int = DEFAULT_CHUNK_SIZE

    def get_store_dir(self) -> Path:
        return Path(self.store_dir)

    def get_workspace_dir(self) -> Path:
        if self.workspace_dir is None:
            return self.get_store_dir()
        return Path(self.workspace_dir)

    @classmethod
    def from_config(cls, resolver: ConfigResolver) -> ProjectContext:
        """Build a context from ``store.*`` and ``archives.*`` config keys."""
        store_dir, _src = resolver.resolve("store.dir")
        workspace_dir = resolver.resolve_optional("store.workspace_dir")
        return cls(
            store_dir=Path(str(store_dir)).expanduser(),
            workspace_dir=None if workspace_dir is None else Path(str(workspace_dir)).expanduser(),
            strip_single_root=resolver.resolve_bool("archives.strip_single_root", True),
            hash_chunk_size=resolver.resolve_int("store.hash_chunk_size", DEFAULT_CHUNK_SIZE),
        )


def configure(resolver: ConfigResolver | None = None) -> ProjectContext:
    """Apply process-wide settings and return the project context.

    Applies ``logging.level`` and ``logging.color``, installs the JSONL
    diagnostics sink when ``diagnostics.enabled`` is true, then builds the
    context from ``store.*`` and ``archives.*``. Call once at startup.

    Raises:
        ConfigError: A logging or store setting is invalid.
    """
    resolver = resolver or ConfigResolver()
    apply_logging_policy(resolver.resolve_logging_policy())
    set_colors(resolver.resolve_bool("logging.color", True))
    if is_diagnostics_enabled(resolver):
        install_jsonl_sink(resolver=resolver)
    return ProjectContext.from_config(resolver)
