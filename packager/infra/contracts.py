from __future__ import annotations

from pathlib import Path
from typing import List, Protocol

from .models import CommandResult, ExecContext, ToolchainConfig


class CommandRunner(Protocol):
    def run(self, argv: List[str], ctx: ExecContext) -> CommandResult:
        raise NotImplementedError


class VersionControl(Protocol):
    """Version-control operations on a working copy.

    All methods raise VersionResolutionError on failure.
    """

    def current_ref(self, repo_dir: Path, ctx: ExecContext) -> str:
        raise NotImplementedError

    def ref_exists(self, repo_dir: Path, ref: str, ctx: ExecContext) -> bool:
        raise NotImplementedError

    def checkout(self, repo_dir: Path, ref: str, ctx: ExecContext, *, force: bool = False) -> None:
        raise NotImplementedError


class Toolchain(Protocol):
    """Compiler that turns a source entry point into a standalone executable."""

    def build_executable(
        self,
        *,
        entry_point: Path,
        output_path: Path,
        toolchain: ToolchainConfig,
        ctx: ExecContext,
    ) -> CommandResult:
        raise NotImplementedError


class LicenseScanner(Protocol):
    """Dependency resolution and license discovery for a project tree.

    Both calls run with ``ctx.cwd`` set to the project root.
    """

    def bootstrap(self, ctx: ExecContext) -> CommandResult:
        raise NotImplementedError

    def cache(self, ctx: ExecContext) -> CommandResult:
        raise NotImplementedError


class Fetcher(Protocol):
    def fetch(self, url: str, *, timeout_s: float) -> bytes:
        """Return the response body or raise NetworkError."""
        raise NotImplementedError


class Archiver(Protocol):
    extension: str

    def write(self, src_dir: Path, dest: Path) -> None:
        """Archive the full contents of ``src_dir`` into ``dest``."""
        raise NotImplementedError
