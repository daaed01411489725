"""Pytest configuration and fixtures."""

import io
import json
import sys
import tarfile
import zipfile
from pathlib import Path

import pytest

# Add src to path (for 'depstore.*' imports without an editable install)
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))


@pytest.fixture(autouse=True)
def _isolate_global_buses():
    """Keep event/log subscribers and verbosity from leaking between tests."""
    from depstore.core.events import get_event_bus
    from depstore.core.logging import VerbosityLevel, get_log_bus, set_log_sink, set_verbosity

    get_event_bus().clear()
    get_log_bus().clear()
    set_verbosity(VerbosityLevel.NORMAL)
    yield
    set_log_sink(None)
    get_event_bus().clear()
    get_log_bus().clear()
    set_verbosity(VerbosityLevel.NORMAL)


@pytest.fixture
def store_dir(tmp_path):
    """Store root (not created; the import creates it on demand)."""
    return tmp_path / "store"


@pytest.fixture
def context(store_dir):
    from depstore.context import ProjectContext

    return ProjectContext(store_dir=store_dir)


@pytest.fixture
def package_files():
    """Build a file mapping with a package.json descriptor.

    Returns:
        Callable (name, version, extra) -> dict of relative path -> bytes
    """

    def _build(name="foo", version="1.0.0", extra=None):
        files = {"package.json": json.dumps({"name": name, "version": version}).encode()}
        files.update(extra if extra is not None else {"a.js": b"var a;\n", "b.js": b"var b;\n"})
        return files

    return _build


@pytest.fixture
def make_tgz(tmp_path):
    """Write a gzip tarball under tmp_path/archives.

    Entries are placed under ``root`` (npm style ``package/``) unless root is None.
    """

    def _make(filename, files, *, root="package"):
        path = tmp_path / "archives" / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with tarfile.open(path, "w:gz") as tf:
            for rel, data in sorted(files.items()):
                ti = tarfile.TarInfo(name=f"{root}/{rel}" if root else rel)
                ti.size = len(data)
                ti.mtime = 0
                tf.addfile(ti, io.BytesIO(data))
        return path

    return _make


@pytest.fixture
def make_zip(tmp_path):
    """Write a zip archive under tmp_path/archives (entries at the root by default)."""

    def _make(filename, files, *, root=None):
        path = tmp_path / "archives" / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, "w") as zf:
            for rel, data in sorted(files.items()):
                zf.writestr(f"{root}/{rel}" if root else rel, data)
        return path

    return _make
