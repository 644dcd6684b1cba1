from __future__ import annotations

import gzip
import os
import platform
import stat
import tarfile
import tempfile
import time
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..infra.contracts import Archiver
from ..infra.errors import ArchiveError
from ..infra.models import ARCHIVE_FORMATS, ArchiveResult
from ..utils.fs import is_executable
from .checksums import digest_and_size

# Earliest timestamp a ZIP entry can carry.
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


def detect_platform() -> str:
    """Lowercase host kernel name, e.g. ``linux`` or ``darwin``."""
    return platform.system().lower()


def _source_date_epoch() -> Optional[int]:
    raw = str(os.environ.get("SOURCE_DATE_EPOCH", "") or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def path_component(value: str) -> str:
    """Make a version string usable as a single path component."""
    return str(value).replace("/", "-").replace("\\", "-")


def archive_path(*, root: Path, name: str, version: str, platform_name: str, arch: str = "x64", fmt: str = "tar.gz") -> Path:
    """``<root>/pkg/<version>/<name>-<version>-<platform>-<arch>.<ext>``."""
    v = path_component(version)
    return root / "pkg" / v / f"{name}-{v}-{platform_name}-{arch}.{fmt}"


def _collect_entries(src_dir: Path) -> List[Tuple[str, Path]]:
    # Deterministic order: sorted relative POSIX paths, directories included.
    entries: List[Tuple[str, Path]] = []
    for root, dirs, files in os.walk(src_dir):
        dirs.sort()
        for name in dirs + sorted(files):
            p = Path(root) / name
            entries.append((p.relative_to(src_dir).as_posix(), p))
    return sorted(entries, key=lambda t: t[0])


def _normalized_mode(p: Path) -> int:
    if p.is_dir() or is_executable(p):
        return 0o755
    return 0o644


class TarGzArchiver(Archiver):
    """Reproducible gzip-compressed tarball of a directory's contents."""

    extension = "tar.gz"

    def write(self, src_dir: Path, dest: Path) -> None:
        mtime = _source_date_epoch() or 0

        def _normalize(ti: tarfile.TarInfo) -> tarfile.TarInfo:
            ti.uid = 0
            ti.gid = 0
            ti.uname = ""
            ti.gname = ""
            ti.mtime = mtime
            return ti

        with dest.open("wb") as raw:
            # GzipFile directly so the header carries no timestamp or filename.
            with gzip.GzipFile(filename="", mode="wb", fileobj=raw, mtime=0) as gz:
                with tarfile.open(fileobj=gz, mode="w", format=tarfile.PAX_FORMAT) as tf:
                    for arcname, p in _collect_entries(src_dir):
                        ti = tf.gettarinfo(str(p), arcname=arcname)
                        if not ti.issym():
                            ti.mode = _normalized_mode(p)
                        ti = _normalize(ti)
                        if ti.isreg():
                            with p.open("rb") as f:
                                tf.addfile(ti, f)
                        else:
                            tf.addfile(ti)


class ZipArchiver(Archiver):
    """Reproducible ZIP of a directory's contents."""

    extension = "zip"

    def write(self, src_dir: Path, dest: Path) -> None:
        epoch = _source_date_epoch()
        fixed_dt = time.gmtime(epoch)[:6] if epoch and epoch >= 315532800 else _ZIP_EPOCH

        def _zipinfo(name: str, mode: int) -> zipfile.ZipInfo:
            zi = zipfile.ZipInfo(filename=name, date_time=fixed_dt)
            zi.compress_type = zipfile.ZIP_DEFLATED
            zi.create_system = 3
            zi.external_attr = (mode & 0xFFFF) << 16
            return zi

        with zipfile.ZipFile(dest, "w") as zf:
            for arcname, p in _collect_entries(src_dir):
                if p.is_symlink():
                    # Stored as a link entry, never followed.
                    zf.writestr(_zipinfo(arcname, stat.S_IFLNK | 0o777), os.readlink(p))
                    continue
                if p.is_dir():
                    zi = _zipinfo(arcname + "/", stat.S_IFDIR | 0o755)
                    zi.external_attr |= 0x10
                    zf.writestr(zi, b"")
                    continue
                zf.writestr(_zipinfo(arcname, stat.S_IFREG | _normalized_mode(p)), p.read_bytes())


ARCHIVERS: Dict[str, Archiver] = {
    "tar.gz": TarGzArchiver(),
    "zip": ZipArchiver(),
}


def archiver_for(fmt: str) -> Archiver:
    if fmt not in ARCHIVERS:
        raise ArchiveError(f"Unsupported archive format {fmt!r} (allowed: {list(ARCHIVE_FORMATS)})")
    return ARCHIVERS[fmt]


class ArchiveBuilder:
    """Archives an assembled build directory at its release path.

    The archive is written to a temporary sibling of the target and renamed
    into place only once complete, so a failed build never replaces a prior
    artifact.
    """

    def __init__(self, *, root: Path, name: str, arch: str = "x64", fmt: str = "tar.gz"):
        self.root = root
        self.name = name
        self.arch = arch
        self.archiver = archiver_for(fmt)

    def target_for(self, version: str, platform_name: str) -> Path:
        return archive_path(
            root=self.root,
            name=self.name,
            version=version,
            platform_name=platform_name,
            arch=self.arch,
            fmt=self.archiver.extension,
        )

    def build(self, build_dir: Path, version: str, platform_name: str = "") -> ArchiveResult:
        platform_name = platform_name or detect_platform()
        target = self.target_for(version, platform_name)
        tmp_path: Optional[Path] = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".partial", dir=str(target.parent))
            os.close(fd)
            tmp_path = Path(tmp)
            self.archiver.write(build_dir, tmp_path)
            tmp_path.replace(target)
            digest, size = digest_and_size(target)
        except (OSError, tarfile.TarError, zipfile.BadZipFile) as e:
            raise ArchiveError(f"Failed to write archive {target}: {e}") from e
        finally:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()

        return ArchiveResult(path=target, sha256=digest, size_bytes=size)
