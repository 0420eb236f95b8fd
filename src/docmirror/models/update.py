from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class DiffResult(BaseModel):
    filename: str
    has_changes: bool
    diff: str
    lines_added: int
    lines_removed: int


class Classification(BaseModel):
    """Per-document outcome of an update check."""

    new: list[str] = []
    changed: list[str] = []
    unchanged: list[str] = []
    failed: list[str] = []

    @property
    def affected(self) -> list[str]:
        """Filenames a commit would touch (new plus changed)."""
        return [*self.new, *self.changed]


class DownloadResult(BaseModel):
    filename: str
    success: bool
    error: str | None = None
    retries: int = 0


class CheckResult(BaseModel):
    timestamp: datetime
    total: int
    classification: Classification
    diffs: dict[str, DiffResult] = {}
    summary: str


class CommitResult(BaseModel):
    message: str
    applied: list[str]
    timestamp: datetime


class DiscardResult(BaseModel):
    discarded: bool
    message: str


class SyncResult(BaseModel):
    """Outcome of a first-time download straight into the live store."""

    total: int
    downloaded: list[str]
    failed: list[str]
    cached: int


class ChangelogEntry(BaseModel):
    timestamp_iso: str
    message: str
    affected_files: list[str] = []


class UpdateStatus(BaseModel):
    installed: bool
    last_update: datetime | None = None
    age_hours: float | None = None
    has_pending: bool = False
    pending: Classification | None = None
    pending_since: datetime | None = None
    missing_docs: list[str] = []
    recent_changes: list[ChangelogEntry] = []
    reminder: str | None = None
