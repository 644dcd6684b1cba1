from __future__ import annotations

import shutil
from pathlib import Path
from typing import Sequence

from ..infra.errors import StagingError
from ..utils.fs import copytree_filtered

# Test fixtures, cached license data, vendored dependencies, the dependency
# lockfile and earlier build outputs.
DEFAULT_EXCLUDES = ("test/", ".licenses/", "vendor/", "Gemfile.lock", "pkg/")


class RepositorySnapshotter:
    def snapshot(self, source_root: Path, dest_dir: Path, exclude_patterns: Sequence[str] = DEFAULT_EXCLUDES) -> Path:
        """Copy ``source_root`` into ``dest_dir`` without the excluded entries.

        License discovery has to start from an unpinned dependency state, so
        lockfiles and pre-populated dependency directories are left behind.
        """
        if not source_root.is_dir():
            raise StagingError(f"Source root is not a directory: {source_root}")
        try:
            copytree_filtered(source_root, dest_dir, exclude_patterns)
        except (OSError, shutil.Error) as e:
            raise StagingError(f"Failed to snapshot {source_root} into {dest_dir}: {e}") from e
        return dest_dir
