from __future__ import annotations

import os
from contextlib import ExitStack
from pathlib import Path
from typing import Mapping, Optional

from ..artifacts.packaging import ArchiveBuilder, detect_platform
from ..config.load_build_profile import BuildProfile
from ..infra.errors import ConfigurationError
from ..infra.factory import Collaborators, build_collaborators
from ..infra.models import BuildOutcome, BuildRequest, ExecContext, ToolchainConfig
from .compile import CompilerAdapter, resolve_openssl_dir
from .licenses import LicenseCollector
from .metadata import MetadataAssembler
from .snapshot import RepositorySnapshotter
from .version import VersionController
from .workspace import WorkspaceManager

# Timeout for the certificate-directory probe.
CERT_PROBE_TIMEOUT_S = 60


def _stage(name: str, message: str) -> None:
    print(f"[packager] stage={name} {message}")


def validate_compiler_path(raw: Optional[str]) -> Path:
    """Return the compiler path or raise ConfigurationError.

    The compiler must be an existing, readable regular file.
    """
    value = str(raw or "").strip()
    if not value:
        raise ConfigurationError("Specify a compiler path as an argument or through the environment")
    p = Path(value).expanduser()
    if not p.is_file():
        raise ConfigurationError(f"Compiler not found or not a regular file: {p}")
    if not os.access(p, os.R_OK):
        raise ConfigurationError(f"Compiler is not readable: {p}")
    return p.resolve()


def resolve_build_request(
    *,
    profile: BuildProfile,
    source_root: Path,
    compiler: Optional[str] = None,
    version: Optional[str] = None,
    platform: str = "",
    env: Optional[Mapping[str, str]] = None,
    collaborators: Optional[Collaborators] = None,
) -> BuildRequest:
    """Build the request from CLI values, falling back to the environment.

    The compiler path is validated before anything else so that an unusable
    compiler never causes a workspace to be created. Without an explicit
    version the current reference of the source tree is used.
    """
    environ = os.environ if env is None else env
    compiler_value = compiler or str(environ.get(profile.compiler.env_var, "") or "")
    compiler_path = validate_compiler_path(compiler_value)

    root = source_root.resolve()
    resolved_version = str(version or environ.get(profile.version.env_var, "") or "").strip()
    if not resolved_version:
        collab = collaborators or build_collaborators(profile)
        ctx = ExecContext.from_process(cwd=root, timeout_s=profile.version.timeout_s)
        resolved_version = collab.vcs.current_ref(root, ctx)

    return BuildRequest(compiler_path=compiler_path, version=resolved_version, source_root=root, platform=platform)


def run_build(
    request: BuildRequest,
    profile: BuildProfile,
    collaborators: Optional[Collaborators] = None,
    *,
    workspace_manager: Optional[WorkspaceManager] = None,
    archive_format: Optional[str] = None,
) -> BuildOutcome:
    """Run the packaging pipeline for ``request``.

    Scoped guards (workspace, then version pin) unwind in reverse order on
    every exit path; any PackagingError propagates to the caller afterwards.
    """
    validate_compiler_path(str(request.compiler_path))

    collab = collaborators or build_collaborators(profile)
    pkg = profile.package
    platform_name = request.platform or detect_platform()
    base_ctx = ExecContext.from_process(cwd=request.source_root)
    wm = workspace_manager or WorkspaceManager(prefix=pkg.name)

    # Fail on an unsupported format before any work is done.
    archives = ArchiveBuilder(root=request.source_root, name=pkg.name, arch=pkg.arch, fmt=archive_format or pkg.archive_format)

    with ExitStack() as stack:
        ws = stack.enter_context(wm.workspace())
        _stage("workspace", f"build_dir={ws.build_dir} copy_dir={ws.copy_dir}")

        _stage("snapshot", f"source_root={request.source_root}")
        RepositorySnapshotter().snapshot(request.source_root, ws.copy_dir, profile.snapshot_exclude)
        snap_ctx = base_ctx.with_cwd(ws.copy_dir)

        _stage("version", f"requested={request.version}")
        versions = VersionController(collab.vcs, snap_ctx.with_timeout(profile.version.timeout_s))
        stack.enter_context(versions.pinned(ws.copy_dir, request.version))

        _stage("compile", f"compiler={request.compiler_path}")
        openssl_dir = resolve_openssl_dir(
            explicit=profile.compiler.openssl_dir,
            probe=profile.compiler.cert_dir_probe,
            runner=collab.runner,
            ctx=snap_ctx.with_timeout(CERT_PROBE_TIMEOUT_S),
        )
        toolchain_config = ToolchainConfig(
            compiler_path=request.compiler_path,
            openssl_dir=openssl_dir,
            clean_tmpdir=profile.compiler.clean_tmpdir,
            extra_args=list(profile.compiler.extra_args),
            timeout_s=profile.compiler.timeout_s,
        )
        exe = CompilerAdapter(collab.toolchain, snap_ctx).compile(
            ws.copy_dir / pkg.entry_point,
            ws.build_dir / pkg.name,
            toolchain_config,
        )
        _stage("compile", f"executable={exe.path.name} sha256={exe.sha256[:12]} bytes={exe.size_bytes}")

        _stage("licenses", f"cache_dir={profile.licenses.cache_dir}")
        LicenseCollector(
            collab.scanner,
            snap_ctx,
            cache_dir=profile.licenses.cache_dir,
            lock_files=profile.licenses.lock_files,
            unset_env=profile.licenses.unset_env,
        ).collect(ws.copy_dir, ws.meta_dir)

        _stage("metadata", f"runtime_license={profile.runtime_license.url}")
        MetadataAssembler(
            collab.fetcher,
            source_root=request.source_root,
            runtime_license_url=profile.runtime_license.url,
            runtime_license_dest=profile.runtime_license.dest,
            metadata_files=pkg.metadata_files,
            timeout_s=profile.runtime_license.timeout_s,
        ).assemble(ws.meta_dir)

        _stage("archive", f"platform={platform_name}")
        result = archives.build(ws.build_dir, request.version, platform_name)

    return BuildOutcome(
        name=pkg.name,
        version=request.version,
        platform=platform_name,
        archive_path=result.path,
        sha256=result.sha256,
        size_bytes=result.size_bytes,
    )
