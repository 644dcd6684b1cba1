from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

ARCHIVE_FORMATS: Tuple[str, ...] = ("tar.gz", "zip")


@dataclass(frozen=True)
class BuildRequest:
    """Inputs of a single packaging run. Immutable once the pipeline starts."""

    compiler_path: Path
    version: str
    source_root: Path
    # Empty means "detect from the host".
    platform: str = ""


@dataclass(frozen=True)
class Workspace:
    build_dir: Path
    copy_dir: Path

    @property
    def meta_dir(self) -> Path:
        return self.build_dir / "meta"


@dataclass(frozen=True)
class ExecContext:
    """Execution context handed to every external process invocation.

    Stages narrow the context they receive (different working directory,
    variables removed) by deriving a new instance; the process-wide
    environment and current directory are never mutated.
    """

    cwd: Path
    env: Mapping[str, str] = field(default_factory=dict)
    timeout_s: Optional[float] = None

    @classmethod
    def from_process(cls, cwd: Path, timeout_s: Optional[float] = None) -> "ExecContext":
        return cls(cwd=cwd, env=dict(os.environ), timeout_s=timeout_s)

    def with_cwd(self, cwd: Path) -> "ExecContext":
        return replace(self, cwd=cwd)

    def with_timeout(self, timeout_s: Optional[float]) -> "ExecContext":
        return replace(self, timeout_s=timeout_s)

    def without_env(self, names: Iterable[str]) -> "ExecContext":
        drop = set(names)
        return replace(self, env={k: v for k, v in self.env.items() if k not in drop})

    def with_env(self, extra: Mapping[str, str]) -> "ExecContext":
        merged: Dict[str, str] = dict(self.env)
        merged.update({k: str(v) for k, v in extra.items()})
        return replace(self, env=merged)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command."""

    argv: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    def diagnostics(self) -> str:
        parts = [f"$ {' '.join(self.argv)}"]
        if self.timed_out:
            parts.append("(timed out)")
        else:
            parts.append(f"(exit {self.returncode})")
        out = (self.stdout or "").strip()
        err = (self.stderr or "").strip()
        if out:
            parts.append(f"STDOUT:\n{out}")
        if err:
            parts.append(f"STDERR:\n{err}")
        return "\n".join(parts)


@dataclass(frozen=True)
class UndoToken:
    """Captured checkout state of a snapshot.

    ``changed`` is False when the snapshot was already at the requested
    version, in which case there is nothing to restore.
    """

    repo_dir: Path
    original_ref: str
    changed: bool


@dataclass(frozen=True)
class ToolchainConfig:
    compiler_path: Path
    openssl_dir: Path
    clean_tmpdir: bool = True
    extra_args: List[str] = field(default_factory=list)
    timeout_s: Optional[float] = None


@dataclass(frozen=True)
class Executable:
    path: Path
    sha256: str
    size_bytes: int


@dataclass(frozen=True)
class ArchiveResult:
    path: Path
    sha256: str
    size_bytes: int


@dataclass(frozen=True)
class BuildOutcome:
    """Success report of a packaging run."""

    name: str
    version: str
    platform: str
    archive_path: Path
    sha256: str
    size_bytes: int
