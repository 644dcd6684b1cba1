from __future__ import annotations

from typing import List, Optional

from ..contracts import CommandRunner, LicenseScanner
from ..models import CommandResult, ExecContext


class CommandLicenseScanner(LicenseScanner):
    """LicenseScanner driven by two configured command lines.

    ``bootstrap_cmd`` resolves dependencies from scratch (e.g. ``script/bootstrap``)
    and ``scan_cmd`` runs the scanner's cache operation
    (e.g. ``bundle exec exe/licensed cache``).
    """

    def __init__(
        self,
        runner: CommandRunner,
        *,
        bootstrap_cmd: List[str],
        scan_cmd: List[str],
        timeout_s: Optional[float] = None,
    ):
        self.runner = runner
        self.bootstrap_cmd = list(bootstrap_cmd)
        self.scan_cmd = list(scan_cmd)
        self.timeout_s = timeout_s

    def bootstrap(self, ctx: ExecContext) -> CommandResult:
        if not self.bootstrap_cmd:
            return CommandResult(argv=[], returncode=0)
        return self.runner.run(self.bootstrap_cmd, ctx.with_timeout(self.timeout_s))

    def cache(self, ctx: ExecContext) -> CommandResult:
        return self.runner.run(self.scan_cmd, ctx.with_timeout(self.timeout_s))
