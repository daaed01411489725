"""depstore - import local package archives into a version-keyed store."""

__version__ = "0.1.0"

from depstore.context import ProjectContext, configure
from depstore.pipeline import ImportPipeline, import_from_file, new_workspace_name
from depstore.store import InstallResult, PackageMetadata

__all__ = [
    "ImportPipeline",
    "InstallResult",
    "PackageMetadata",
    "ProjectContext",
    "configure",
    "import_from_file",
    "new_workspace_name",
]
