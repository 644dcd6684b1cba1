from __future__ import annotations

import subprocess
from typing import List

from ..contracts import CommandRunner
from ..models import CommandResult, ExecContext


class LocalCommandRunner(CommandRunner):
    """Runs external commands synchronously on the local host.

    The working directory and environment come from the ExecContext only.
    A timeout or a failure to start the process is reported as a failed
    CommandResult; callers translate it into the error kind of their stage.
    """

    def run(self, argv: List[str], ctx: ExecContext) -> CommandResult:
        cmd = [str(a) for a in argv]
        try:
            cp = subprocess.run(
                cmd,
                cwd=str(ctx.cwd),
                env=dict(ctx.env),
                check=False,
                text=True,
                capture_output=True,
                timeout=ctx.timeout_s,
            )
        except subprocess.TimeoutExpired as e:
            return CommandResult(
                argv=cmd,
                returncode=-1,
                stdout=_as_text(e.stdout),
                stderr=_as_text(e.stderr) or f"Command timed out after {ctx.timeout_s}s",
                timed_out=True,
            )
        except OSError as e:
            return CommandResult(argv=cmd, returncode=127, stderr=str(e))
        return CommandResult(argv=cmd, returncode=cp.returncode, stdout=cp.stdout or "", stderr=cp.stderr or "")


def _as_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)
