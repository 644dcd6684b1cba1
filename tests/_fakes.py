from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from _testutil import ensure_repo_on_path

ensure_repo_on_path()

from packager.infra.errors import NetworkError, VersionResolutionError  # noqa: E402
from packager.infra.models import CommandResult, ExecContext, ToolchainConfig  # noqa: E402


class FakeVcs:
    def __init__(self, current: str = "main", refs: Iterable[str] = ("main", "2.3.0")):
        self.current = current
        self.refs = set(refs)
        self.calls: List[Tuple[Any, ...]] = []

    def current_ref(self, repo_dir: Path, ctx: ExecContext) -> str:
        self.calls.append(("current_ref", repo_dir))
        return self.current

    def ref_exists(self, repo_dir: Path, ref: str, ctx: ExecContext) -> bool:
        self.calls.append(("ref_exists", ref))
        return ref in self.refs

    def checkout(self, repo_dir: Path, ref: str, ctx: ExecContext, *, force: bool = False) -> None:
        self.calls.append(("checkout", ref, force))
        if ref not in self.refs:
            raise VersionResolutionError(f"unknown ref {ref}")
        self.current = ref

    def checkouts(self) -> List[Tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == "checkout"]


class FakeToolchain:
    def __init__(self, *, fail: bool = False, produce_output: bool = True):
        self.fail = fail
        self.produce_output = produce_output
        self.invocations: List[Dict[str, Any]] = []

    def build_executable(self, *, entry_point: Path, output_path: Path, toolchain: ToolchainConfig, ctx: ExecContext) -> CommandResult:
        self.invocations.append({"entry_point": entry_point, "output_path": output_path, "toolchain": toolchain, "cwd": ctx.cwd})
        argv = [str(toolchain.compiler_path), "-o", str(output_path), str(entry_point)]
        if self.fail:
            return CommandResult(argv=argv, returncode=1, stderr="toolchain exploded")
        if self.produce_output:
            output_path.write_bytes(b"\x7fELF fake executable")
        return CommandResult(argv=argv, returncode=0)


class FakeScanner:
    def __init__(self, *, fail_bootstrap: bool = False, fail_cache: bool = False, write_cache: bool = True):
        self.fail_bootstrap = fail_bootstrap
        self.fail_cache = fail_cache
        self.write_cache = write_cache
        self.contexts: List[ExecContext] = []

    def bootstrap(self, ctx: ExecContext) -> CommandResult:
        self.contexts.append(ctx)
        if self.fail_bootstrap:
            return CommandResult(argv=["script/bootstrap"], returncode=2, stderr="bundle install failed")
        return CommandResult(argv=["script/bootstrap"], returncode=0)

    def cache(self, ctx: ExecContext) -> CommandResult:
        self.contexts.append(ctx)
        argv = ["bundle", "exec", "exe/licensed", "cache"]
        if self.fail_cache:
            return CommandResult(argv=argv, returncode=1, stderr="license scan failed")
        if self.write_cache:
            rec = ctx.cwd / ".licenses" / "bundler" / "thor.dep.yml"
            rec.parent.mkdir(parents=True, exist_ok=True)
            rec.write_text("name: thor\nlicense: mit\n", encoding="utf-8")
        return CommandResult(argv=argv, returncode=0)


class FakeFetcher:
    def __init__(self, body: bytes = b"Ruby is copyrighted free software.\n", *, fail: bool = False):
        self.body = body
        self.fail = fail
        self.urls: List[str] = []

    def fetch(self, url: str, *, timeout_s: float) -> bytes:
        self.urls.append(url)
        if self.fail:
            raise NetworkError(f"Failed to fetch {url}: HTTP 503")
        return self.body


class FakeRunner:
    """CommandRunner answering the certificate-directory probe."""

    def __init__(self, stdout: str = "/usr/lib/ssl/certs\n", returncode: int = 0):
        self.stdout = stdout
        self.returncode = returncode
        self.commands: List[List[str]] = []

    def run(self, argv: List[str], ctx: ExecContext) -> CommandResult:
        self.commands.append(list(argv))
        return CommandResult(argv=list(argv), returncode=self.returncode, stdout=self.stdout)


def make_collaborators(
    *,
    vcs: Optional[FakeVcs] = None,
    toolchain: Optional[FakeToolchain] = None,
    scanner: Optional[FakeScanner] = None,
    fetcher: Optional[FakeFetcher] = None,
    runner: Optional[FakeRunner] = None,
):
    from packager.infra.factory import Collaborators

    return Collaborators(
        runner=runner or FakeRunner(),
        vcs=vcs or FakeVcs(),
        toolchain=toolchain or FakeToolchain(),
        scanner=scanner or FakeScanner(),
        fetcher=fetcher or FakeFetcher(),
    )


def make_source_tree(root: Path, name: str = "licensed") -> Path:
    """Lay out a minimal gem-shaped source tree under ``root``."""
    files = {
        f"exe/{name}": "#!/usr/bin/env ruby\nputs 'hi'\n",
        f"lib/{name}.rb": "module Licensed; end\n",
        "LICENSE": "MIT License\n",
        "README.md": f"# {name}\n",
        "Gemfile": "source 'https://rubygems.org'\n",
        "Gemfile.lock": "GEM\n",
        "test/test_helper.rb": "# fixture\n",
        "vendor/cache/thor.gem": "gem\n",
        ".licenses/bundler/stale.dep.yml": "name: stale\n",
        "pkg/0.9.0/old.tar.gz": "old\n",
    }
    for rel, text in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
    return root


def make_compiler(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    path.chmod(0o755)
    return path
