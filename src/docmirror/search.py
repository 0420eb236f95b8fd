"""Index-less full-text search over the Live Documents.

A linear scan of every ``*.md`` file in the docs directory. The corpus is a
few dozen files, so no index is kept.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

from docmirror.models.search import SearchResult

if TYPE_CHECKING:
    from pathlib import Path

log = structlog.get_logger()


def compile_query(query: str, *, case_insensitive: bool = True) -> re.Pattern[str]:
    """Compile ``query`` as a regex, falling back to a literal match if it is invalid."""
    flags = re.IGNORECASE if case_insensitive else 0
    try:
        return re.compile(query, flags)
    except re.error:
        return re.compile(re.escape(query), flags)


def search_documents(
    docs_dir: Path,
    query: str,
    *,
    context_lines: int = 5,
    case_insensitive: bool = True,
) -> list[SearchResult]:
    """Return every matching line across the Live Documents, in filename order.

    ``context`` holds up to ``context_lines`` lines on either side of the
    match, including the matching line itself.
    """
    if not query.strip() or not docs_dir.is_dir():
        return []

    pattern = compile_query(query, case_insensitive=case_insensitive)
    results: list[SearchResult] = []

    for path in sorted(docs_dir.glob("*.md")):
        try:
            lines = path.read_text(encoding="utf-8").split("\n")
        except (OSError, UnicodeDecodeError):
            log.warning("search_read_failed", filename=path.name, exc_info=True)
            continue

        for index, line in enumerate(lines):
            if not line or not pattern.search(line):
                continue
            start = max(0, index - context_lines)
            end = min(len(lines), index + context_lines + 1)
            results.append(
                SearchResult(
                    section=path.stem,
                    filename=path.name,
                    line_number=index + 1,
                    matched_line=line.strip(),
                    context=lines[start:end],
                )
            )

    log.debug("search_complete", query=query, matches=len(results))
    return results
