from __future__ import annotations

from pathlib import Path

from ..contracts import CommandRunner, Toolchain
from ..models import CommandResult, ExecContext, ToolchainConfig


class StandaloneCompiler(Toolchain):
    """Toolchain adapter for rubyc-style single-binary compilers.

    Invocation shape::

        <compiler> --openssl-dir <dir> [--clean-tmpdir] [extra...] -o <output> <entry>
    """

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def build_executable(
        self,
        *,
        entry_point: Path,
        output_path: Path,
        toolchain: ToolchainConfig,
        ctx: ExecContext,
    ) -> CommandResult:
        argv = [str(toolchain.compiler_path), "--openssl-dir", str(toolchain.openssl_dir)]
        if toolchain.clean_tmpdir:
            argv.append("--clean-tmpdir")
        argv.extend(toolchain.extra_args)
        argv.extend(["-o", str(output_path), str(entry_point)])
        return self.runner.run(argv, ctx.with_timeout(toolchain.timeout_s))
