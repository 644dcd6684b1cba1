from __future__ import annotations

import shutil
from pathlib import Path
from typing import Sequence

from ..infra.contracts import LicenseScanner
from ..infra.errors import LicenseCollectionError
from ..infra.models import CommandResult, ExecContext
from ..utils.fs import copytree_overwrite


class LicenseCollector:
    """Caches dependency license data for the snapshot and stages it under ``meta/``.

    NOTE: collection runs on a single host, so license data for
    platform-specific dependencies may not match other platforms.
    """

    def __init__(
        self,
        scanner: LicenseScanner,
        ctx: ExecContext,
        *,
        cache_dir: str = ".licenses",
        lock_files: Sequence[str] = ("Gemfile.lock",),
        unset_env: Sequence[str] = ("BUNDLER_VERSION",),
    ):
        self.scanner = scanner
        self.ctx = ctx
        self.cache_dir = cache_dir
        self.lock_files = list(lock_files)
        self.unset_env = list(unset_env)

    def isolated_context(self, snapshot_dir: Path) -> ExecContext:
        # An inherited tool-version override can break dependency resolution.
        return self.ctx.with_cwd(snapshot_dir).without_env(self.unset_env)

    def _clear_stale_state(self, snapshot_dir: Path) -> None:
        # A checkout may have brought back a tracked lockfile or license cache.
        cache = snapshot_dir / self.cache_dir
        if cache.is_dir() and not cache.is_symlink():
            shutil.rmtree(cache)
        elif cache.exists() or cache.is_symlink():
            cache.unlink()
        for name in self.lock_files:
            p = snapshot_dir / name
            if p.is_file() or p.is_symlink():
                p.unlink()

    def _check(self, step: str, cp: CommandResult) -> None:
        if cp.ok:
            return
        reason = "timed out" if cp.timed_out else f"exited with {cp.returncode}"
        raise LicenseCollectionError(f"License {step} {reason}", detail=cp.diagnostics())

    def collect(self, snapshot_dir: Path, meta_dir: Path) -> Path:
        ctx = self.isolated_context(snapshot_dir)
        try:
            self._clear_stale_state(snapshot_dir)
        except OSError as e:
            raise LicenseCollectionError(f"Cannot clear stale dependency state in {snapshot_dir}: {e}") from e

        self._check("bootstrap", self.scanner.bootstrap(ctx))
        self._check("scan", self.scanner.cache(ctx))

        src = snapshot_dir / self.cache_dir
        if not src.is_dir():
            raise LicenseCollectionError(f"License scan produced no cache directory at {src}")

        dest = meta_dir / Path(self.cache_dir).name
        try:
            meta_dir.mkdir(parents=True, exist_ok=True)
            copytree_overwrite(src, dest)
        except (OSError, shutil.Error) as e:
            raise LicenseCollectionError(f"Failed to stage license cache into {dest}: {e}") from e
        return dest
