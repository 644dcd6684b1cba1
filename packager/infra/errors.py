from __future__ import annotations

from typing import Optional


class PackagingError(Exception):
    """Base class for packaging pipeline errors.

    Every subclass names the pipeline stage it belongs to and the process exit
    code the CLI reports for it. ``detail`` carries the diagnostic output of the
    failing external command, when there is one.
    """

    stage = "package"
    exit_code = 1

    def __init__(self, message: str, *, detail: Optional[str] = None):
        super().__init__(message)
        self.detail = detail or ""


class ConfigurationError(PackagingError):
    """Raised when the compiler input is missing or unusable."""

    stage = "configure"
    exit_code = 127


class ProfileError(PackagingError):
    """Raised when a build profile cannot be loaded or fails validation."""

    stage = "configure"
    exit_code = 2


class VersionResolutionError(PackagingError):
    """Raised when the requested version cannot be resolved or checked out."""

    stage = "version"
    exit_code = 3


class CompilationError(PackagingError):
    """Raised when the compiler toolchain fails to produce an executable."""

    stage = "compile"
    exit_code = 4


class LicenseCollectionError(PackagingError):
    """Raised when dependency resolution or the license scan fails."""

    stage = "licenses"
    exit_code = 5


class NetworkError(PackagingError):
    """Raised when a static metadata asset cannot be fetched."""

    stage = "metadata"
    exit_code = 6


class ArchiveError(PackagingError):
    """Raised when the release archive cannot be written."""

    stage = "archive"
    exit_code = 7


class StagingError(PackagingError):
    """Raised when workspace directories or staged files cannot be prepared."""

    stage = "stage"
    exit_code = 8
