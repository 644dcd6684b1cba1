from __future__ import annotations

import ssl
from pathlib import Path
from typing import List

from ..infra.contracts import CommandRunner, Toolchain
from ..infra.errors import CompilationError
from ..infra.models import ExecContext, Executable, ToolchainConfig
from ..utils.fs import make_executable
from ..artifacts.checksums import digest_and_size


def resolve_openssl_dir(
    *,
    explicit: str,
    probe: List[str],
    runner: CommandRunner,
    ctx: ExecContext,
) -> Path:
    """Root of the trusted-certificate configuration handed to the compiler.

    Order: an explicit directory, then the parent of the certificate directory
    printed by ``probe``, then the parent of Python's OpenSSL certificate path.
    """
    if explicit:
        return Path(explicit).expanduser().resolve()

    if probe:
        cp = runner.run(probe, ctx)
        cert_dir = cp.stdout.strip().splitlines()[-1].strip() if cp.ok and cp.stdout.strip() else ""
        if not cert_dir:
            raise CompilationError("Cannot determine the trusted-certificate directory", detail=cp.diagnostics())
        return Path(cert_dir).parent.resolve()

    capath = ssl.get_default_verify_paths().openssl_capath
    if not capath:
        raise CompilationError("Cannot determine the trusted-certificate directory from the host OpenSSL configuration")
    return Path(capath).parent.resolve()


class CompilerAdapter:
    """Compiles the snapshot's entry point into a standalone executable."""

    def __init__(self, toolchain: Toolchain, ctx: ExecContext):
        self.toolchain = toolchain
        self.ctx = ctx

    def compile(self, entry_point: Path, output_path: Path, toolchain_config: ToolchainConfig) -> Executable:
        if not entry_point.is_file():
            raise CompilationError(f"Entry point not found: {entry_point}")

        # Compile under a temporary name and promote only a complete output.
        partial = output_path.with_name(f".{output_path.name}.partial")
        try:
            _discard(partial)
        except OSError as e:
            raise CompilationError(f"Cannot clear previous partial output {partial}: {e}") from e

        cp = self.toolchain.build_executable(
            entry_point=entry_point,
            output_path=partial,
            toolchain=toolchain_config,
            ctx=self.ctx,
        )
        if not cp.ok:
            _discard(partial)
            reason = "timed out" if cp.timed_out else f"exited with {cp.returncode}"
            raise CompilationError(f"Compiler {reason}", detail=cp.diagnostics())
        if not partial.is_file():
            raise CompilationError(f"Compiler produced no output at {partial}", detail=cp.diagnostics())

        try:
            partial.replace(output_path)
            make_executable(output_path)
            digest, size = digest_and_size(output_path)
        except OSError as e:
            _discard(partial)
            raise CompilationError(f"Failed to promote compiled executable to {output_path}: {e}") from e
        return Executable(path=output_path, sha256=digest, size_bytes=size)


def _discard(path: Path) -> None:
    if path.exists():
        path.unlink()
