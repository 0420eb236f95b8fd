"""Changelog ledger: validated, append-only, newest-first history of commits."""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from docmirror.errors import InvalidMessage
from docmirror.fileops import atomic_write_text
from docmirror.models.update import ChangelogEntry

if TYPE_CHECKING:
    from pathlib import Path

log = structlog.get_logger()

MIN_MESSAGE_LENGTH = 10
MAX_MESSAGE_LENGTH = 1000
VAGUE_MESSAGES = frozenset({"update", "fix", "change", "modified", "updated"})

LEDGER_HEADER = (
    "# Documentation Changelog\n"
    "\n"
    "This file tracks all changes to the mirrored documentation over time.\n"
    "\n"
    "---\n"
    "\n"
)

_SEPARATOR = "---\n"
_ENTRY_HEADING_RE = re.compile(r"^## (\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})$")
_FILE_LINE_RE = re.compile(r"^- `(.+)`$")


def validate(message: str) -> None:
    """Raise InvalidMessage unless ``message`` is a usable changelog entry."""
    trimmed = (message or "").strip()

    if not trimmed:
        raise InvalidMessage("Changelog message cannot be empty")

    if trimmed.lower() in VAGUE_MESSAGES:
        raise InvalidMessage(
            f'Changelog too vague: "{trimmed}". Please be more specific about what changed.'
        )

    if len(trimmed) < MIN_MESSAGE_LENGTH:
        raise InvalidMessage(
            f"Changelog too short (min {MIN_MESSAGE_LENGTH} chars, got {len(trimmed)})"
        )

    if len(trimmed) > MAX_MESSAGE_LENGTH:
        raise InvalidMessage(
            f"Changelog too long (max {MAX_MESSAGE_LENGTH} chars, got {len(trimmed)})"
        )


def format_entry(message: str, files: list[str], timestamp: datetime) -> str:
    lines = [f"## {timestamp.strftime('%Y-%m-%d %H:%M:%S')}", "", message.strip()]

    if files:
        lines.append("")
        lines.append("**Files updated:**")
        lines.extend(f"- `{name}`" for name in files)

    lines.extend(["", "---", ""])
    return "\n".join(lines)


def parse_entries(text: str) -> list[ChangelogEntry]:
    """Parse ledger text back into entries, newest first."""
    entries: list[ChangelogEntry] = []
    current: dict | None = None
    message_lines: list[str] = []

    def _flush() -> None:
        if current is not None:
            current["message"] = "\n".join(message_lines).strip()
            entries.append(ChangelogEntry(**current))

    for line in text.splitlines():
        heading = _ENTRY_HEADING_RE.match(line)
        if heading:
            _flush()
            current = {"timestamp_iso": heading.group(1), "affected_files": []}
            message_lines = []
            continue
        if current is None or line == "**Files updated:**" or line == "---":
            continue
        file_match = _FILE_LINE_RE.match(line)
        if file_match:
            current["affected_files"].append(file_match.group(1))
        else:
            message_lines.append(line)

    _flush()
    return entries


class ChangelogLedger:
    """The ``CHANGELOG.md`` file. Entries are only ever prepended."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def append(
        self,
        message: str,
        files: list[str],
        *,
        timestamp: datetime | None = None,
    ) -> ChangelogEntry:
        """Validate ``message`` and prepend a dated entry to the ledger."""
        validate(message)
        timestamp = timestamp or datetime.now(UTC)
        entry_text = format_entry(message, files, timestamp)

        if self._path.is_file():
            existing = self._path.read_text(encoding="utf-8")
        else:
            existing = LEDGER_HEADER

        separator_index = existing.find(_SEPARATOR)
        if separator_index != -1:
            head = existing[: separator_index + len(_SEPARATOR)]
            rest = existing[separator_index + len(_SEPARATOR) :].lstrip("\n")
            updated = f"{head}\n{entry_text}{rest}"
        else:
            updated = f"{existing}\n{entry_text}"

        atomic_write_text(self._path, updated)
        log.info("changelog_appended", files=len(files))
        return ChangelogEntry(
            timestamp_iso=timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            message=message.strip(),
            affected_files=list(files),
        )

    def entries(self) -> list[ChangelogEntry]:
        if not self._path.is_file():
            return []
        return parse_entries(self._path.read_text(encoding="utf-8"))

    def tail(self, limit: int = 5) -> list[ChangelogEntry]:
        """Return the ``limit`` most recent entries."""
        return self.entries()[:limit]
