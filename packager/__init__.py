"""Executable packager.

Builds a versioned, self-contained distributable archive for a command-line
tool: the source tree is snapshotted into a temporary workspace, pinned to the
requested version, compiled into a standalone executable, and bundled with the
third-party license data of its dependencies.

Entry point: ``python -m packager.cli build <compiler> [version]``.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.1.0"
