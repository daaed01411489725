"""Filesystem operations for the package store.

Every failure is reported as StoreFilesystemError so callers see a single
error kind for environmental problems (permissions, disk full, cross-device
rename).
"""

from __future__ import annotations

import contextlib
import os
import shutil
from pathlib import Path

from depstore.core.errors import StoreFilesystemError


def ensure_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StoreFilesystemError(f"Cannot create directory '{path}': {e}") from e


def claim_dir(path: Path) -> bool:
    """Atomically create ``path`` as an empty directory.

    Returns False if something already exists at ``path``. This is the
    install gate: exactly one concurrent caller can claim a given path.
    """
    try:
        os.mkdir(path)
    except FileExistsError:
        return False
    except OSError as e:
        raise StoreFilesystemError(f"Cannot create directory '{path}': {e}") from e
    return True


def move_dir_onto_claim(src: Path, claimed: Path) -> None:
    """Move directory ``src`` onto the empty, claimed directory ``claimed``.

    On POSIX a single rename replaces the empty directory atomically. Windows
    cannot rename onto an existing directory, so the claim is released just
    before the rename there.

    Raises:
        StoreFilesystemError: The move failed; the claim has been released.
    """
    try:
        if os.name == "nt":
            claimed.rmdir()
            os.rename(src, claimed)
        else:
            os.replace(src, claimed)
    except OSError as e:
        with contextlib.suppress(OSError):
            claimed.rmdir()
        raise StoreFilesystemError(
            f"Cannot move '{src}' to '{claimed}': {e}",
            "Workspace and store must be on the same filesystem",
        ) from e


def remove_tree(path: Path) -> None:
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except FileNotFoundError:
        return
    except OSError as e:
        raise StoreFilesystemError(f"Cannot remove '{path}': {e}") from e


def atomic_write_bytes(path: Path, data: bytes, *, installed_dir: Path | None = None) -> None:
    """Write ``data`` to ``path`` via temp file + replace."""
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    except OSError as e:
        with contextlib.suppress(OSError):
            tmp_path.unlink()
        raise StoreFilesystemError(
            f"Cannot write '{path}': {e}",
            stage="persist_manifest",
            installed_dir=installed_dir,
        ) from e
