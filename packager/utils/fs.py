from __future__ import annotations

import fnmatch
import os
import shutil
import stat
import tempfile
from pathlib import Path
from typing import Callable, Iterable, List, Sequence, Set


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write bytes atomically so readers never observe a partial file."""
    ensure_dir(path.parent)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    tmp_path = Path(tmp)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def is_executable(path: Path) -> bool:
    return path.is_file() and bool(path.stat().st_mode & stat.S_IXUSR)


def copytree_overwrite(src: Path, dst: Path) -> None:
    """Copy directory tree, overwriting destination."""
    if dst.exists():
        shutil.rmtree(dst)
    shutil.copytree(src, dst, symlinks=True)


def exclude_matcher(patterns: Sequence[str]) -> Callable[[str, List[str]], Set[str]]:
    """Build a ``shutil.copytree`` ignore callback with rsync-style patterns.

    - ``name/`` matches directories called ``name`` at any depth
    - ``name`` matches files or directories called ``name`` at any depth
    - shell globs (``*.lock``) are allowed in both forms
    """
    dir_only = [p.rstrip("/") for p in patterns if p.endswith("/")]
    any_kind = [p for p in patterns if p and not p.endswith("/")]

    def _ignore(directory: str, names: List[str]) -> Set[str]:
        ignored: Set[str] = set()
        for name in names:
            if any(fnmatch.fnmatchcase(name, pat) for pat in any_kind):
                ignored.add(name)
                continue
            if dir_only and any(fnmatch.fnmatchcase(name, pat) for pat in dir_only):
                full = os.path.join(directory, name)
                if os.path.isdir(full) and not os.path.islink(full):
                    ignored.add(name)
        return ignored

    return _ignore


def copytree_filtered(src: Path, dst: Path, exclude: Iterable[str]) -> None:
    """Copy ``src`` into the (possibly existing, empty) ``dst`` skipping excluded entries."""
    shutil.copytree(src, dst, symlinks=True, ignore=exclude_matcher(list(exclude)), dirs_exist_ok=True)
