from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema

from ..infra.errors import ProfileError
from ..infra.models import ARCHIVE_FORMATS
from ..utils.yamlio import read_yaml

PROFILE_ENV_VAR = "PACKAGER_BUILD_PROFILE"
DEFAULT_PROFILE_REL_PATH = Path("config/build_profile.yml")

# Built-in profile: a Ruby gem compiled with rubyc, licenses cached by `licensed`.
# `{name}` in string values is replaced with the package name.
DEFAULT_PROFILE: Dict[str, Any] = {
    "package": {
        "name": "",
        "entry_point": "exe/{name}",
        "arch": "x64",
        "archive_format": "tar.gz",
        "metadata_files": ["LICENSE", "README.md"],
    },
    "snapshot": {
        "exclude": ["test/", ".licenses/", "vendor/", "Gemfile.lock", "pkg/"],
    },
    "compiler": {
        "env_var": "RUBYC",
        "openssl_dir": "",
        "cert_dir_probe": ["ruby", "-e", "require 'net/https'; puts OpenSSL::X509::DEFAULT_CERT_DIR"],
        "clean_tmpdir": True,
        "extra_args": [],
        "timeout_s": 3600,
    },
    "version": {
        "env_var": "VERSION",
        "git_bin": "git",
        "timeout_s": 120,
    },
    "licenses": {
        "bootstrap": ["script/bootstrap"],
        "scan": ["bundle", "exec", "exe/{name}", "cache"],
        "cache_dir": ".licenses",
        "lock_files": ["Gemfile.lock"],
        "unset_env": ["BUNDLER_VERSION"],
        "timeout_s": 1800,
    },
    "runtime_license": {
        "url": "https://www.ruby-lang.org/en/about/license.txt",
        "dest": "ruby/license.txt",
        "timeout_s": 60,
    },
}


_STR_LIST = {"type": "array", "items": {"type": "string"}}
_TIMEOUT = {"type": ["number", "null"], "exclusiveMinimum": 0}


def _section(props: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "object", "properties": props, "additionalProperties": False}


def _profile_schema() -> Dict[str, Any]:
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "properties": {
            "description": {"type": "string"},
            "package": _section(
                {
                    "name": {"type": "string"},
                    "entry_point": {"type": "string", "minLength": 1},
                    "arch": {"type": "string", "minLength": 1},
                    "archive_format": {"type": "string", "enum": list(ARCHIVE_FORMATS)},
                    "metadata_files": _STR_LIST,
                }
            ),
            "snapshot": _section({"exclude": _STR_LIST}),
            "compiler": _section(
                {
                    "env_var": {"type": "string", "minLength": 1},
                    "openssl_dir": {"type": "string"},
                    "cert_dir_probe": _STR_LIST,
                    "clean_tmpdir": {"type": "boolean"},
                    "extra_args": _STR_LIST,
                    "timeout_s": _TIMEOUT,
                }
            ),
            "version": _section(
                {
                    "env_var": {"type": "string", "minLength": 1},
                    "git_bin": {"type": "string", "minLength": 1},
                    "timeout_s": _TIMEOUT,
                }
            ),
            "licenses": _section(
                {
                    "bootstrap": _STR_LIST,
                    "scan": {"type": "array", "items": {"type": "string"}, "minItems": 1},
                    "cache_dir": {"type": "string", "minLength": 1},
                    "lock_files": _STR_LIST,
                    "unset_env": _STR_LIST,
                    "timeout_s": _TIMEOUT,
                }
            ),
            "runtime_license": _section(
                {
                    "url": {"type": "string", "pattern": "^https?://"},
                    "dest": {"type": "string", "minLength": 1},
                    "timeout_s": _TIMEOUT,
                }
            ),
        },
        "additionalProperties": False,
    }


@dataclass(frozen=True)
class PackageSettings:
    name: str
    entry_point: str
    arch: str
    archive_format: str
    metadata_files: List[str]


@dataclass(frozen=True)
class CompilerSettings:
    env_var: str
    openssl_dir: str
    cert_dir_probe: List[str]
    clean_tmpdir: bool
    extra_args: List[str]
    timeout_s: Optional[float]


@dataclass(frozen=True)
class VersionSettings:
    env_var: str
    git_bin: str
    timeout_s: Optional[float]


@dataclass(frozen=True)
class LicenseSettings:
    bootstrap: List[str]
    scan: List[str]
    cache_dir: str
    lock_files: List[str]
    unset_env: List[str]
    timeout_s: Optional[float]


@dataclass(frozen=True)
class RuntimeLicenseSettings:
    url: str
    dest: str
    timeout_s: Optional[float]


@dataclass(frozen=True)
class BuildProfile:
    source: str
    package: PackageSettings
    snapshot_exclude: List[str]
    compiler: CompilerSettings
    version: VersionSettings
    licenses: LicenseSettings
    runtime_license: RuntimeLicenseSettings

    def as_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "package": vars(self.package),
            "snapshot": {"exclude": self.snapshot_exclude},
            "compiler": vars(self.compiler),
            "version": vars(self.version),
            "licenses": vars(self.licenses),
            "runtime_license": vars(self.runtime_license),
        }


def resolve_build_profile_path(source_root: Path, cli_path: Optional[str] = None) -> Optional[Path]:
    """Resolve the build profile YAML path.

    Precedence:
      1) CLI flag --profile
      2) PACKAGER_BUILD_PROFILE
      3) <source_root>/config/build_profile.yml, when it exists
    Returns None when only the built-in defaults apply.
    """
    if cli_path and str(cli_path).strip():
        return Path(str(cli_path).strip()).expanduser().resolve()

    env_path = str(os.environ.get(PROFILE_ENV_VAR, "") or "").strip()
    if env_path:
        return Path(env_path).expanduser().resolve()

    candidate = (source_root / DEFAULT_PROFILE_REL_PATH).resolve()
    return candidate if candidate.exists() else None


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = copy.deepcopy(v)
    return out


def _expand(value: Any, name: str) -> Any:
    if isinstance(value, str):
        return value.replace("{name}", name)
    if isinstance(value, list):
        return [_expand(v, name) for v in value]
    if isinstance(value, dict):
        return {k: _expand(v, name) for k, v in value.items()}
    return value


def _validate_dict(data: Dict[str, Any], where: str) -> None:
    try:
        jsonschema.validate(instance=data, schema=_profile_schema())
    except jsonschema.ValidationError as e:
        loc = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ProfileError(f"build profile schema validation failed ({where}) at {loc}: {e.message}") from e


def _timeout(v: Any) -> Optional[float]:
    return None if v is None else float(v)


def profile_from_dict(data: Dict[str, Any], *, source_root: Path, source: str = "<defaults>") -> BuildProfile:
    """Validate ``data`` layered over DEFAULT_PROFILE and build a BuildProfile."""
    _validate_dict(data, source)
    merged = _deep_merge(DEFAULT_PROFILE, data)

    name = str(merged["package"].get("name") or "").strip() or source_root.resolve().name
    if not name:
        raise ProfileError(f"build profile has no package name and none can be derived from {source_root}")
    merged = _expand(merged, name)

    pkg = merged["package"]
    comp = merged["compiler"]
    ver = merged["version"]
    lic = merged["licenses"]
    rt = merged["runtime_license"]

    return BuildProfile(
        source=source,
        package=PackageSettings(
            name=name,
            entry_point=str(pkg["entry_point"]),
            arch=str(pkg["arch"]),
            archive_format=str(pkg["archive_format"]),
            metadata_files=list(pkg["metadata_files"]),
        ),
        snapshot_exclude=list(merged["snapshot"]["exclude"]),
        compiler=CompilerSettings(
            env_var=str(comp["env_var"]),
            openssl_dir=str(comp["openssl_dir"] or ""),
            cert_dir_probe=list(comp["cert_dir_probe"]),
            clean_tmpdir=bool(comp["clean_tmpdir"]),
            extra_args=list(comp["extra_args"]),
            timeout_s=_timeout(comp["timeout_s"]),
        ),
        version=VersionSettings(
            env_var=str(ver["env_var"]),
            git_bin=str(ver["git_bin"]),
            timeout_s=_timeout(ver["timeout_s"]),
        ),
        licenses=LicenseSettings(
            bootstrap=list(lic["bootstrap"]),
            scan=list(lic["scan"]),
            cache_dir=str(lic["cache_dir"]),
            lock_files=list(lic["lock_files"]),
            unset_env=list(lic["unset_env"]),
            timeout_s=_timeout(lic["timeout_s"]),
        ),
        runtime_license=RuntimeLicenseSettings(
            url=str(rt["url"]),
            dest=str(rt["dest"]),
            timeout_s=_timeout(rt["timeout_s"]),
        ),
    )


def load_build_profile(source_root: Path, cli_path: Optional[str] = None) -> BuildProfile:
    """Load and validate the build profile for ``source_root``.

    Environment overrides:
      - PACKAGER_BUILD_PROFILE (file path)
    """
    path = resolve_build_profile_path(source_root, cli_path)
    if path is None:
        return profile_from_dict({}, source_root=source_root)
    if not path.exists():
        raise ProfileError(f"build profile not found: {path}")
    try:
        data = read_yaml(path)
    except (OSError, ValueError) as e:
        raise ProfileError(f"build profile unreadable: {path}: {e}") from e
    return profile_from_dict(data, source_root=source_root, source=str(path))

