from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Tuple


def sha256_file(path: Path) -> str:
    """Compute SHA-256 for a file.

    The executable and the archive are both reported through this function so
    the digest printed for a release matches the one computed at build time.
    """
    h = hashlib.sha256()
    with Path(path).open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def digest_and_size(path: Path) -> Tuple[str, int]:
    return sha256_file(path), int(path.stat().st_size)
