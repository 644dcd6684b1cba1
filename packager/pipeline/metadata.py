from __future__ import annotations

import shutil
from pathlib import Path
from typing import List, Optional, Sequence

from ..infra.contracts import Fetcher
from ..infra.errors import StagingError
from ..utils.fs import atomic_write_bytes, ensure_dir

RUNTIME_LICENSE_URL = "https://www.ruby-lang.org/en/about/license.txt"


class MetadataAssembler:
    """Stages the static, non-executable package content under ``meta/``."""

    def __init__(
        self,
        fetcher: Fetcher,
        *,
        source_root: Path,
        runtime_license_url: str = RUNTIME_LICENSE_URL,
        runtime_license_dest: str = "ruby/license.txt",
        metadata_files: Sequence[str] = ("LICENSE", "README.md"),
        timeout_s: Optional[float] = 60,
    ):
        self.fetcher = fetcher
        self.source_root = source_root
        self.runtime_license_url = runtime_license_url
        self.runtime_license_dest = runtime_license_dest
        self.metadata_files = list(metadata_files)
        self.timeout_s = timeout_s

    def assemble(self, meta_dir: Path) -> List[Path]:
        try:
            ensure_dir(meta_dir)
        except OSError as e:
            raise StagingError(f"Cannot create metadata directory {meta_dir}: {e}") from e
        written: List[Path] = []

        # NetworkError propagates; there is no offline fallback.
        body = self.fetcher.fetch(self.runtime_license_url, timeout_s=self.timeout_s or 60)
        runtime_license = meta_dir / self.runtime_license_dest
        try:
            atomic_write_bytes(runtime_license, body)
        except OSError as e:
            raise StagingError(f"Failed to write {runtime_license}: {e}") from e
        written.append(runtime_license)

        for name in self.metadata_files:
            src = self.source_root / name
            if not src.is_file():
                raise StagingError(f"Metadata file not found: {src}")
            dest = meta_dir / Path(name).name
            try:
                shutil.copy2(src, dest)
            except OSError as e:
                raise StagingError(f"Failed to copy {src} into {meta_dir}: {e}") from e
            written.append(dest)

        return written
