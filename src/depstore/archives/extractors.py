"""Stdlib extractors for package archives.

Both extractors unpack regular files only, in stable member order, and refuse
entries that would land outside the destination directory. The destination
is created only after the archive has been opened and its member list read.
"""

from __future__ import annotations

import contextlib
import shutil
import tarfile
import zipfile
import zlib
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from depstore.core.errors import ExtractionError
from depstore.core.logging import get_logger

log = get_logger(__name__)

_READ_ERRORS = (
    zipfile.BadZipFile,
    zipfile.LargeZipFile,
    tarfile.TarError,
    zlib.error,
    EOFError,
    OSError,
    ValueError,
)


def _entry_parts(name: str) -> tuple[str, ...]:
    # Backslashes show up in zips written on Windows.
    p = PurePosixPath(name.replace("\\", "/"))
    return tuple(part for part in p.parts if part not in ("/", "."))


def _plan_targets(names: Iterable[str], *, strip_single_root: bool) -> list[str]:
    """Map archive member names to destination-relative posix paths.

    With ``strip_single_root``, a top-level directory shared by every entry
    (npm's ``package/``) is dropped.
    """
    parts = [_entry_parts(n) for n in names]
    if strip_single_root and parts and all(len(p) > 1 for p in parts):
        roots = {p[0] for p in parts}
        if len(roots) == 1 and ".." not in roots:
            parts = [p[1:] for p in parts]
    return ["/".join(p) for p in parts]


def _safe_target(archive_path: Path, dest_dir: Path, rel: str, name: str) -> Path:
    dst_path = (dest_dir / rel).resolve()
    inside = bool(rel) and ".." not in rel.split("/")
    if inside:
        try:
            dst_path.relative_to(dest_dir.resolve())
        except ValueError:
            inside = False
    if not inside:
        raise ExtractionError(archive_path, f"Archive entry escapes destination: {name}")
    return dst_path


class ZipExtractor:
    """Extractor for ``.zip`` archives."""

    name = "zip"

    def __init__(self, *, strip_single_root: bool = True) -> None:
        self.strip_single_root = strip_single_root

    def extract(self, archive_path: Path, dest_dir: Path) -> None:
        files = 0
        try:
            with zipfile.ZipFile(archive_path, "r") as zf:
                infos = sorted(
                    [i for i in zf.infolist() if not i.is_dir()], key=lambda x: x.filename
                )
                targets = _plan_targets(
                    [i.filename for i in infos], strip_single_root=self.strip_single_root
                )
                dest_dir.mkdir(parents=True, exist_ok=True)
                for info, rel in zip(infos, targets, strict=True):
                    dst_path = _safe_target(archive_path, dest_dir, rel, info.filename)
                    dst_path.parent.mkdir(parents=True, exist_ok=True)
                    with zf.open(info, "r") as src_f, open(dst_path, "wb") as dst_f:
                        shutil.copyfileobj(src_f, dst_f)
                    files += 1
        except ExtractionError:
            raise
        except _READ_ERRORS as e:
            log.verbose(f"zip extract failed archive={archive_path.name!r} error={e!r}")
            raise ExtractionError(archive_path) from e
        log.debug(f"zip extract archive={archive_path.name!r} files={files}")


class TarGzExtractor:
    """Extractor for gzip-compressed tarballs (``.tgz``, ``.gz``)."""

    name = "tar.gz"

    def __init__(self, *, strip_single_root: bool = True) -> None:
        self.strip_single_root = strip_single_root

    def extract(self, archive_path: Path, dest_dir: Path) -> None:
        files = 0
        try:
            with tarfile.open(name=str(archive_path), mode="r:gz") as tf:
                members = sorted([m for m in tf.getmembers() if m.isfile()], key=lambda x: x.name)
                targets = _plan_targets(
                    [m.name for m in members], strip_single_root=self.strip_single_root
                )
                dest_dir.mkdir(parents=True, exist_ok=True)
                for m, rel in zip(members, targets, strict=True):
                    dst_path = _safe_target(archive_path, dest_dir, rel, m.name)
                    dst_path.parent.mkdir(parents=True, exist_ok=True)
                    f = tf.extractfile(m)
                    if f is None:
                        continue
                    with contextlib.closing(f), open(dst_path, "wb") as out_f:
                        shutil.copyfileobj(f, out_f)
                    files += 1
        except ExtractionError:
            raise
        except _READ_ERRORS as e:
            log.verbose(f"tar.gz extract failed archive={archive_path.name!r} error={e!r}")
            raise ExtractionError(archive_path) from e
        log.debug(f"tar.gz extract archive={archive_path.name!r} files={files}")
