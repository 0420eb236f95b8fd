"""On-disk layout of the data directory.

Every path the sync core touches is derived from a single root so tests can
point the whole system at ``tmp_path``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class DataPaths:
    root: Path

    @classmethod
    def from_dir(cls, data_dir: str | Path) -> DataPaths:
        return cls(root=Path(data_dir).expanduser())

    @property
    def docs_dir(self) -> Path:
        return self.root / "docs"

    @property
    def cache_dir(self) -> Path:
        return self.root / "cache"

    @property
    def pending_dir(self) -> Path:
        return self.root / ".pending"

    @property
    def pending_downloads_dir(self) -> Path:
        return self.pending_dir / "downloads"

    @property
    def pending_diffs_dir(self) -> Path:
        return self.pending_dir / "diffs"

    @property
    def pending_summary_file(self) -> Path:
        return self.pending_dir / "summary.txt"

    @property
    def pending_timestamp_file(self) -> Path:
        return self.pending_dir / "timestamp"

    @property
    def last_update_file(self) -> Path:
        return self.root / ".last-update"

    @property
    def missing_docs_file(self) -> Path:
        return self.root / ".missing-docs"

    @property
    def changelog_file(self) -> Path:
        return self.root / "CHANGELOG.md"

    @property
    def manifest_cache_file(self) -> Path:
        return self.root / ".llms-txt-cache.txt"

    def doc_path(self, filename: str) -> Path:
        return self.docs_dir / filename

    def cache_path(self, filename: str) -> Path:
        return self.cache_dir / filename

    def pending_download_path(self, filename: str) -> Path:
        return self.pending_downloads_dir / filename

    def pending_diff_path(self, filename: str) -> Path:
        return self.pending_diffs_dir / f"{filename}.diff"

    def pending_list_path(self, kind: str) -> Path:
        return self.pending_dir / f"{kind}.list"
