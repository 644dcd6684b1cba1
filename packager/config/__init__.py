"""Build profile configuration.

A build profile names the package, its entry point, and the commands used to
talk to the compiler, the version-control system and the license scanner.
"""
from __future__ import annotations

from .load_build_profile import (
    DEFAULT_PROFILE,
    PROFILE_ENV_VAR,
    BuildProfile,
    load_build_profile,
    profile_from_dict,
    resolve_build_profile_path,
)

__all__ = [
    "DEFAULT_PROFILE",
    "PROFILE_ENV_VAR",
    "BuildProfile",
    "load_build_profile",
    "profile_from_dict",
    "resolve_build_profile_path",
]
