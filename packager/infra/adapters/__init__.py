from __future__ import annotations

from .exec_local import LocalCommandRunner
from .vcs_git import GitVersionControl
from .compiler_exe import StandaloneCompiler
from .scanner_cmd import CommandLicenseScanner
from .fetch_http import HttpFetcher

__all__ = [
    "LocalCommandRunner",
    "GitVersionControl",
    "StandaloneCompiler",
    "CommandLicenseScanner",
    "HttpFetcher",
]
