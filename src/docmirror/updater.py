"""Update orchestrator: the check, commit and discard state machine.

States are persisted entirely on disk. A pending update exists exactly when
the ``.pending/`` staging directory exists::

    NoPending --check--> Pending --commit--> NoPending
                         Pending --discard-> NoPending
                         Pending --check---> Pending (old staging dropped)

There is no cross-process lock. Two concurrent invocations can race on the
staging directory, and a crash part-way through ``commit`` can leave some
Live Documents promoted and others not. Re-running ``check`` recovers.
"""

from __future__ import annotations

import asyncio
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from docmirror import differ
from docmirror.changelog import validate as validate_message
from docmirror.errors import NetworkError, NotFoundError, StateError
from docmirror.fileops import atomic_write_text, read_lines, remove_tree
from docmirror.models.update import (
    CheckResult,
    Classification,
    CommitResult,
    DiffResult,
    DiscardResult,
    DownloadResult,
    SyncResult,
    UpdateStatus,
)
from docmirror.protocols import identity_transform
from docmirror.resources import iter_documents

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from docmirror.changelog import ChangelogLedger
    from docmirror.config import Settings
    from docmirror.models.catalog import DocumentSection
    from docmirror.paths import DataPaths
    from docmirror.protocols import ContentCacheProtocol, FetcherProtocol, Transform
    from docmirror.resources import ResourceResolver

log = structlog.get_logger()

_LIST_KINDS = ("new", "changed", "unchanged", "failed")


def _now_ms() -> int:
    return int(time.time() * 1000)


def _from_ms(raw: str) -> datetime | None:
    try:
        return datetime.fromtimestamp(int(raw.strip()) / 1000, tz=UTC)
    except (ValueError, OverflowError, OSError):
        return None


def _unique_documents(documents: list[DocumentSection]) -> list[DocumentSection]:
    """Drop repeated filenames. The first catalog entry for a filename wins."""
    seen: set[str] = set()
    unique: list[DocumentSection] = []
    for doc in documents:
        if doc.filename in seen:
            log.warning("duplicate_catalog_filename", filename=doc.filename, url=doc.url)
            continue
        seen.add(doc.filename)
        unique.append(doc)
    return unique


def format_summary(classification: Classification, total: int, timestamp: datetime) -> str:
    """Human-readable report stored as ``.pending/summary.txt``."""
    lines = [
        f"Update check: {timestamp.strftime('%Y-%m-%d %H:%M:%S')} UTC",
        "",
        f"Total documents: {total}",
        f"New: {len(classification.new)}",
        f"Changed: {len(classification.changed)}",
        f"Unchanged: {len(classification.unchanged)}",
        f"Failed: {len(classification.failed)}",
    ]
    for label, names in (
        ("New documents", classification.new),
        ("Changed documents", classification.changed),
        ("Failed downloads", classification.failed),
    ):
        if names:
            lines.append("")
            lines.append(f"{label}:")
            lines.extend(f"  - {name}" for name in names)
    return "\n".join(lines) + "\n"


class UpdateOrchestrator:
    """Coordinates fetcher, differ, cache and ledger around the staging area."""

    def __init__(
        self,
        paths: DataPaths,
        fetcher: FetcherProtocol,
        cache: ContentCacheProtocol,
        ledger: ChangelogLedger,
        resolver: ResourceResolver,
        settings: Settings,
        transform: Transform = identity_transform,
    ) -> None:
        self._paths = paths
        self._fetcher = fetcher
        self._cache = cache
        self._ledger = ledger
        self._resolver = resolver
        self._settings = settings
        self._transform = transform

    # ------------------------------------------------------------------
    # State queries
    # ------------------------------------------------------------------

    def has_pending(self) -> bool:
        return self._paths.pending_dir.is_dir()

    def is_first_run(self) -> bool:
        """True until the first successful sync or commit has been recorded."""
        return not self._paths.docs_dir.is_dir() or not self._paths.last_update_file.is_file()

    def last_update(self) -> datetime | None:
        if not self._paths.last_update_file.is_file():
            return None
        return _from_ms(self._paths.last_update_file.read_text(encoding="utf-8"))

    def pending_classification(self) -> Classification:
        return Classification(
            **{kind: read_lines(self._paths.pending_list_path(kind)) for kind in _LIST_KINDS}
        )

    def pending_diff(self, filename: str) -> str:
        """Return the stored unified diff for a changed document in staging."""
        if not self.has_pending():
            raise StateError("No pending update")
        diff_path = self._paths.pending_diff_path(filename)
        if not diff_path.is_file():
            raise NotFoundError(
                f"No pending diff for {filename}",
                suggestion="Only documents classified as changed have a diff.",
            )
        return diff_path.read_text(encoding="utf-8")

    # ------------------------------------------------------------------
    # Downloads
    # ------------------------------------------------------------------

    async def _fetch_batch(
        self,
        documents: list[DocumentSection],
        destination: Callable[[str], Path],
    ) -> list[DownloadResult]:
        """Fetch every document through a bounded pool and wait for the whole batch.

        A failing document is recorded in its result and never cancels its
        siblings. Results come back in catalog order.
        """
        semaphore = asyncio.Semaphore(max(self._settings.fetcher.concurrency, 1))

        async def _download(doc: DocumentSection) -> DownloadResult:
            async with semaphore:
                try:
                    content = await self._fetcher.fetch(doc.url)
                except NetworkError as exc:
                    log.warning("download_failed", filename=doc.filename, error=exc.message)
                    return DownloadResult(
                        filename=doc.filename, success=False, error=exc.message, retries=exc.retries
                    )

            try:
                content = self._transform(content)
            except Exception as exc:
                # Caller-supplied transform; a failure only affects this document.
                log.warning("transform_failed", filename=doc.filename, exc_info=True)
                return DownloadResult(
                    filename=doc.filename, success=False, error=f"Transform failed: {exc}"
                )

            try:
                atomic_write_text(destination(doc.filename), content)
            except OSError as exc:
                log.warning("download_write_failed", filename=doc.filename, error=str(exc))
                return DownloadResult(filename=doc.filename, success=False, error=str(exc))

            return DownloadResult(filename=doc.filename, success=True)

        return list(await asyncio.gather(*(_download(doc) for doc in documents)))

    def _write_missing_docs(self, failed: list[str]) -> None:
        atomic_write_text(self._paths.missing_docs_file, "\n".join(failed))

    def _record_update_time(self) -> None:
        atomic_write_text(self._paths.last_update_file, str(_now_ms()))

    async def download_all(self) -> SyncResult:
        """First-time sync: download the whole catalog straight into the live store.

        Bypasses staging, since there is nothing yet to compare against.
        """
        config = await self._resolver.load()
        documents = _unique_documents(list(iter_documents(config)))
        log.info("sync_started", total=len(documents))

        results = await self._fetch_batch(documents, self._paths.doc_path)
        downloaded = [r.filename for r in results if r.success]
        failed = [r.filename for r in results if not r.success]

        self._record_update_time()
        self._write_missing_docs(failed)

        source_urls = {doc.filename: doc.url for doc in documents}
        cached = await self._cache.warm(downloaded, source_urls)

        log.info("sync_complete", downloaded=len(downloaded), failed=len(failed), cached=cached)
        return SyncResult(
            total=len(documents), downloaded=downloaded, failed=failed, cached=cached
        )

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    async def check(self) -> CheckResult:
        """Fetch every catalog document into staging and classify it.

        Per-document failures are recorded under ``failed``. Only failing to
        resolve the catalog at all raises (ConfigurationError).
        """
        config = await self._resolver.load()
        documents = _unique_documents(list(iter_documents(config)))

        if remove_tree(self._paths.pending_dir):
            log.info("pending_update_replaced")
        self._paths.pending_downloads_dir.mkdir(parents=True, exist_ok=True)
        self._paths.pending_diffs_dir.mkdir(parents=True, exist_ok=True)

        log.info("update_check_started", total=len(documents))
        results = await self._fetch_batch(documents, self._paths.pending_download_path)

        classification = Classification()
        diffs: dict[str, DiffResult] = {}
        for result in results:
            if not result.success:
                classification.failed.append(result.filename)
                continue

            staged_path = self._paths.pending_download_path(result.filename)
            live_path = self._paths.doc_path(result.filename)
            if not live_path.is_file():
                classification.new.append(result.filename)
                continue

            candidate = staged_path.read_text(encoding="utf-8")
            current = live_path.read_text(encoding="utf-8")
            if differ.compare(current, candidate):
                doc_diff = differ.diff(result.filename, current, candidate)
                atomic_write_text(self._paths.pending_diff_path(result.filename), doc_diff.diff)
                diffs[result.filename] = doc_diff
                classification.changed.append(result.filename)
            else:
                # Staging keeps only what a commit would touch.
                staged_path.unlink(missing_ok=True)
                classification.unchanged.append(result.filename)

        timestamp = datetime.now(UTC)
        for kind in _LIST_KINDS:
            names = getattr(classification, kind)
            atomic_write_text(self._paths.pending_list_path(kind), "".join(f"{n}\n" for n in names))

        summary = format_summary(classification, len(documents), timestamp)
        atomic_write_text(self._paths.pending_summary_file, summary)
        atomic_write_text(
            self._paths.pending_timestamp_file, str(int(timestamp.timestamp() * 1000))
        )
        self._write_missing_docs(classification.failed)

        log.info(
            "update_check_complete",
            new=len(classification.new),
            changed=len(classification.changed),
            unchanged=len(classification.unchanged),
            failed=len(classification.failed),
        )
        return CheckResult(
            timestamp=timestamp,
            total=len(documents),
            classification=classification,
            diffs=diffs,
            summary=summary,
        )

    async def commit(self, message: str) -> CommitResult:
        """Promote staged documents to the live store and record a changelog entry.

        The message is validated before anything on disk is touched.
        """
        validate_message(message)
        if not self.has_pending():
            raise StateError("No pending update to commit")

        classification = self.pending_classification()
        affected = classification.affected

        applied: list[str] = []
        for filename in affected:
            staged_path = self._paths.pending_download_path(filename)
            if not staged_path.is_file():
                log.warning("staged_file_missing", filename=filename)
                continue
            atomic_write_text(
                self._paths.doc_path(filename), staged_path.read_text(encoding="utf-8")
            )
            applied.append(filename)

        timestamp = datetime.now(UTC)
        self._ledger.append(message, affected, timestamp=timestamp)
        await self._cache.clear()
        remove_tree(self._paths.pending_dir)
        self._record_update_time()

        log.info("update_committed", applied=len(applied))
        return CommitResult(message=message.strip(), applied=applied, timestamp=timestamp)

    async def discard(self) -> DiscardResult:
        if not remove_tree(self._paths.pending_dir):
            return DiscardResult(discarded=False, message="Nothing to discard")
        log.info("update_discarded")
        return DiscardResult(discarded=True, message="Pending update discarded")

    async def status(self) -> UpdateStatus:
        """Read-only report. Surfaces a reminder when the mirror is stale."""
        last_update = self.last_update()
        age_hours: float | None = None
        reminder: str | None = None
        if last_update is not None:
            age_hours = (datetime.now(UTC) - last_update).total_seconds() / 3600
            if age_hours > self._settings.update.reminder_hours:
                reminder = (
                    f"Documentation was last updated {int(age_hours)} hours ago. "
                    "Run an update check to pull the latest changes."
                )

        has_pending = self.has_pending()
        pending: Classification | None = None
        pending_since: datetime | None = None
        if has_pending:
            pending = self.pending_classification()
            if self._paths.pending_timestamp_file.is_file():
                pending_since = _from_ms(
                    self._paths.pending_timestamp_file.read_text(encoding="utf-8")
                )

        return UpdateStatus(
            installed=not self.is_first_run(),
            last_update=last_update,
            age_hours=age_hours,
            has_pending=has_pending,
            pending=pending,
            pending_since=pending_since,
            missing_docs=read_lines(self._paths.missing_docs_file),
            recent_changes=self._ledger.tail(self._settings.update.changelog_tail),
            reminder=reminder,
        )
