from __future__ import annotations

from .models import (
    ArchiveResult,
    BuildOutcome,
    BuildRequest,
    CommandResult,
    ExecContext,
    Executable,
    ToolchainConfig,
    UndoToken,
    Workspace,
)

from .errors import (
    PackagingError,
    ConfigurationError,
    ProfileError,
    VersionResolutionError,
    CompilationError,
    LicenseCollectionError,
    NetworkError,
    ArchiveError,
    StagingError,
)

from .contracts import (
    CommandRunner,
    VersionControl,
    Toolchain,
    LicenseScanner,
    Fetcher,
    Archiver,
)

__all__ = [
    "ArchiveResult",
    "BuildOutcome",
    "BuildRequest",
    "CommandResult",
    "ExecContext",
    "Executable",
    "ToolchainConfig",
    "UndoToken",
    "Workspace",
    "PackagingError",
    "ConfigurationError",
    "ProfileError",
    "VersionResolutionError",
    "CompilationError",
    "LicenseCollectionError",
    "NetworkError",
    "ArchiveError",
    "StagingError",
    "CommandRunner",
    "VersionControl",
    "Toolchain",
    "LicenseScanner",
    "Fetcher",
    "Archiver",
]
