"""Unified diffs between the live and candidate versions of a document."""

from __future__ import annotations

import difflib

from docmirror.models.update import DiffResult


def _normalise(content: str) -> str:
    return content.replace("\r\n", "\n").strip()


def compare(old: str, new: str) -> bool:
    """Return True when the documents differ.

    Line endings are normalised and only the outer whitespace of the whole
    document is trimmed, so a trailing newline alone is not a change.
    """
    return _normalise(old) != _normalise(new)


def diff(filename: str, old: str, new: str, context_lines: int = 3) -> DiffResult:
    """Build a unified diff of ``old`` to ``new`` with added/removed line counts."""
    diff_lines = list(
        difflib.unified_diff(
            old.replace("\r\n", "\n").splitlines(keepends=True),
            new.replace("\r\n", "\n").splitlines(keepends=True),
            fromfile=f"{filename}\tCurrent version",
            tofile=f"{filename}\tNew version",
            n=context_lines,
        )
    )

    lines_added = 0
    lines_removed = 0
    # Skip the two file header lines; everything after is hunk content.
    for line in diff_lines[2:]:
        if line.startswith("+"):
            lines_added += 1
        elif line.startswith("-"):
            lines_removed += 1

    # difflib omits the newline on a final line that lacks one.
    text = "".join(line if line.endswith("\n") else f"{line}\n" for line in diff_lines)

    return DiffResult(
        filename=filename,
        has_changes=bool(diff_lines),
        diff=text,
        lines_added=lines_added,
        lines_removed=lines_removed,
    )


def diff_summary(old: str, new: str) -> tuple[int, int, bool]:
    """Return ``(added, removed, changed)`` without keeping the diff text."""
    result = diff("temp", old, new)
    return result.lines_added, result.lines_removed, result.has_changes
