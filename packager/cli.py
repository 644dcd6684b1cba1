from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config.load_build_profile import load_build_profile
from .infra.errors import PackagingError
from .infra.models import ARCHIVE_FORMATS
from .pipeline.orchestrator import resolve_build_request, run_build, validate_compiler_path

BUILD_USAGE = """\
Builds a distributable package from a standalone-executable compiler and a version.

Packages are of the form <name>-<VERSION>-<PLATFORM>-x64.tar.gz and contain a
./<name> executable plus a meta/ directory with dependency license data.
Built packages are placed in the <source-root>/pkg/<VERSION> directory.

examples:
  build a package for version 1.1.0 using a local rubyc compiler
    $ packager build ./rubyc-darwin 1.1.0
    $ RUBYC=./rubyc-darwin VERSION=1.1.0 packager build
"""


def _source_root(args: argparse.Namespace) -> Path:
    return Path(args.source_root).expanduser().resolve()


def cmd_build(args: argparse.Namespace) -> int:
    source_root = _source_root(args)
    if args.compiler:
        # An explicit compiler is checked before the profile is read. The
        # environment fallback needs the profile for the variable name.
        validate_compiler_path(args.compiler)
    profile = load_build_profile(source_root, cli_path=args.profile)
    request = resolve_build_request(
        profile=profile,
        source_root=source_root,
        compiler=args.compiler,
        version=args.version,
        platform=args.platform or "",
    )
    outcome = run_build(request, profile, archive_format=args.format)

    if args.json:
        print(
            json.dumps(
                {
                    "name": outcome.name,
                    "version": outcome.version,
                    "platform": outcome.platform,
                    "archive_path": str(outcome.archive_path),
                    "sha256": outcome.sha256,
                    "bytes": outcome.size_bytes,
                }
            )
        )
    else:
        print(f"{outcome.name} package built to {outcome.archive_path}")
    return 0


def cmd_show_profile(args: argparse.Namespace) -> int:
    profile = load_build_profile(_source_root(args), cli_path=args.profile)
    print(json.dumps(profile.as_dict(), indent=2, sort_keys=True))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="packager")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser(
        "build",
        help="Build a versioned package archive",
        description=BUILD_USAGE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sp.add_argument("compiler", nargs="?", default=None, help="Path to the compiler (default: $RUBYC or the profile's compiler.env_var)")
    sp.add_argument("version", nargs="?", default=None, help="Version to build (default: $VERSION, then the current git reference)")
    sp.add_argument("--source-root", default=".", help="Repository to package (default: current directory)")
    sp.add_argument("--profile", default=None, help="Build profile YAML (default: $PACKAGER_BUILD_PROFILE or config/build_profile.yml)")
    sp.add_argument("--platform", default=None, help="Platform name used in the archive name (default: host kernel name)")
    sp.add_argument("--format", choices=list(ARCHIVE_FORMATS), default=None, help="Archive format (default: from the profile)")
    sp.add_argument("--json", action="store_true", help="Print a JSON summary instead of a sentence")
    sp.set_defaults(func=cmd_build)

    sp = sub.add_parser("show-profile", help="Print the resolved build profile")
    sp.add_argument("--source-root", default=".")
    sp.add_argument("--profile", default=None)
    sp.set_defaults(func=cmd_show_profile)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args) or 0)
    except PackagingError as e:
        print(f"[packager][FAILED] stage={e.stage} {e}", file=sys.stderr)
        if e.detail:
            print(e.detail, file=sys.stderr)
        return e.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
