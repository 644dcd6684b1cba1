from __future__ import annotations

import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Set

from ..infra.errors import StagingError
from ..infra.models import Workspace


class WorkspaceManager:
    """Creates and removes the two temporary directories of a packaging run."""

    def __init__(self, *, prefix: str = "packager", tmp_root: Optional[Path] = None):
        self.prefix = prefix
        self.tmp_root = tmp_root
        self._released: Set[Workspace] = set()

    def _mkdtemp(self, kind: str) -> Path:
        d = tempfile.mkdtemp(prefix=f"{self.prefix}-{kind}-", dir=str(self.tmp_root) if self.tmp_root else None)
        return Path(d)

    def acquire(self) -> Workspace:
        try:
            build_dir = self._mkdtemp("build")
        except OSError as e:
            raise StagingError(f"Cannot create build directory: {e}") from e
        try:
            copy_dir = self._mkdtemp("copy")
        except OSError as e:
            shutil.rmtree(build_dir, ignore_errors=True)
            raise StagingError(f"Cannot create copy directory: {e}") from e
        return Workspace(build_dir=build_dir, copy_dir=copy_dir)

    def release(self, workspace: Workspace) -> None:
        """Remove both directories. Later calls for the same workspace are no-ops."""
        if workspace in self._released:
            return
        self._released.add(workspace)
        for d in (workspace.copy_dir, workspace.build_dir):
            shutil.rmtree(d, ignore_errors=True)

    @contextmanager
    def workspace(self) -> Iterator[Workspace]:
        ws = self.acquire()
        try:
            yield ws
        finally:
            self.release(ws)
