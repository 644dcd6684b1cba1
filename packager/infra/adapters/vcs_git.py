from __future__ import annotations

from pathlib import Path
from typing import List

from ..contracts import CommandRunner, VersionControl
from ..errors import VersionResolutionError
from ..models import CommandResult, ExecContext


class GitVersionControl(VersionControl):
    """VersionControl backed by the ``git`` CLI."""

    def __init__(self, runner: CommandRunner, git_bin: str = "git"):
        self.runner = runner
        self.git_bin = git_bin

    def _git(self, repo_dir: Path, args: List[str], ctx: ExecContext) -> CommandResult:
        return self.runner.run([self.git_bin, *args], ctx.with_cwd(repo_dir))

    def current_ref(self, repo_dir: Path, ctx: ExecContext) -> str:
        cp = self._git(repo_dir, ["rev-parse", "--abbrev-ref", "HEAD"], ctx)
        if not cp.ok:
            raise VersionResolutionError(f"Failed to read current reference in {repo_dir}", detail=cp.diagnostics())
        ref = cp.stdout.strip()
        if ref != "HEAD":
            return ref

        # Detached HEAD: identify the checkout by its commit instead.
        cp = self._git(repo_dir, ["rev-parse", "--short", "HEAD"], ctx)
        if not cp.ok:
            raise VersionResolutionError(f"Failed to read current commit in {repo_dir}", detail=cp.diagnostics())
        return cp.stdout.strip()

    def ref_exists(self, repo_dir: Path, ref: str, ctx: ExecContext) -> bool:
        cp = self._git(repo_dir, ["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], ctx)
        return cp.ok

    def checkout(self, repo_dir: Path, ref: str, ctx: ExecContext, *, force: bool = False) -> None:
        args = ["checkout", "--quiet"]
        if force:
            args.append("--force")
        args.append(ref)
        cp = self._git(repo_dir, args, ctx)
        if not cp.ok:
            raise VersionResolutionError(f"Failed to check out {ref!r} in {repo_dir}", detail=cp.diagnostics())
