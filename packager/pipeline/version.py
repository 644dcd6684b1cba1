from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from ..infra.contracts import VersionControl
from ..infra.errors import PackagingError, VersionResolutionError
from ..infra.models import ExecContext, UndoToken


class VersionController:
    """Pins a snapshot to a requested version and puts it back afterwards."""

    def __init__(self, vcs: VersionControl, ctx: ExecContext):
        self.vcs = vcs
        self.ctx = ctx

    def pin(self, snapshot_dir: Path, requested_version: str) -> UndoToken:
        current = self.vcs.current_ref(snapshot_dir, self.ctx)
        if current == requested_version:
            return UndoToken(repo_dir=snapshot_dir, original_ref=current, changed=False)

        if not self.vcs.ref_exists(snapshot_dir, requested_version, self.ctx):
            raise VersionResolutionError(f"Version {requested_version!r} does not exist in {snapshot_dir}")
        self.vcs.checkout(snapshot_dir, requested_version, self.ctx)
        print(f"[packager] checked out {requested_version} (was {current})")
        return UndoToken(repo_dir=snapshot_dir, original_ref=current, changed=True)

    def restore(self, token: UndoToken) -> None:
        if not token.changed:
            return
        # Forced: stage artifacts left in the snapshot must not block the restore.
        self.vcs.checkout(token.repo_dir, token.original_ref, self.ctx, force=True)
        print(f"[packager] restored {token.original_ref}")

    @contextmanager
    def pinned(self, snapshot_dir: Path, requested_version: str) -> Iterator[UndoToken]:
        token = self.pin(snapshot_dir, requested_version)
        try:
            yield token
        except BaseException:
            # The stage error wins over a failed restore.
            try:
                self.restore(token)
            except PackagingError as e:
                print(f"[packager] restore of {token.original_ref} failed: {e}")
            raise
        self.restore(token)
