from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..config.load_build_profile import BuildProfile
from .adapters.compiler_exe import StandaloneCompiler
from .adapters.exec_local import LocalCommandRunner
from .adapters.fetch_http import HttpFetcher
from .adapters.scanner_cmd import CommandLicenseScanner
from .adapters.vcs_git import GitVersionControl
from .contracts import CommandRunner, Fetcher, LicenseScanner, Toolchain, VersionControl


@dataclass(frozen=True)
class Collaborators:
    """External collaborators consumed by the packaging pipeline."""

    runner: CommandRunner
    vcs: VersionControl
    toolchain: Toolchain
    scanner: LicenseScanner
    fetcher: Fetcher


def build_collaborators(profile: BuildProfile, runner: Optional[CommandRunner] = None) -> Collaborators:
    """Wire the local-host adapters described by ``profile``."""
    r = runner if runner is not None else LocalCommandRunner()
    return Collaborators(
        runner=r,
        vcs=GitVersionControl(r, git_bin=profile.version.git_bin),
        toolchain=StandaloneCompiler(r),
        scanner=CommandLicenseScanner(
            r,
            bootstrap_cmd=profile.licenses.bootstrap,
            scan_cmd=profile.licenses.scan,
            timeout_s=profile.licenses.timeout_s,
        ),
        fetcher=HttpFetcher(),
    )
