"""Document and section lookup for ``get``-style access.

Pure functions over filenames and Markdown text. No I/O.
"""

from __future__ import annotations

import re

from rapidfuzz import fuzz, process

from docmirror.errors import ErrorCode, NotFoundError
from docmirror.models.search import Heading

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Anchor form of a heading: lowercase, runs of non-alphanumerics become ``-``."""
    return _NON_ALNUM_RE.sub("-", text.lower()).strip("-")


def split_reference(reference: str) -> tuple[str, str | None]:
    """Split ``"slug#anchor"`` into its parts. The anchor is None when absent or empty."""
    slug, _, anchor = reference.strip().partition("#")
    return slug.strip(), anchor.strip() or None


def suggest_documents(
    query: str,
    filenames: list[str],
    *,
    score_cutoff: int = 60,
    limit: int = 5,
) -> list[str]:
    """Closest document slugs to ``query``, best first."""
    slugs = [name.removesuffix(".md") for name in filenames]
    results = process.extract(
        query.lower().removesuffix(".md"),
        slugs,
        scorer=fuzz.WRatio,
        limit=limit,
        score_cutoff=score_cutoff,
    )
    return [slug for slug, _score, _idx in results]


def resolve_document(query: str, filenames: list[str]) -> str:
    """Map a user slug to a Live Document filename.

    Tries the name as given, then ``<query>.md``. Raises NotFoundError with
    fuzzy "did you mean" suggestions otherwise.
    """
    normalised = query.strip()
    if not normalised:
        raise NotFoundError("Document name cannot be empty")

    available = set(filenames)
    for candidate in (normalised, f"{normalised}.md"):
        if candidate in available:
            return candidate

    suggestions = suggest_documents(normalised, filenames)
    if suggestions:
        suggestion = "Did you mean: " + ", ".join(suggestions) + "?"
    else:
        suggestion = "List the available documents to find the right name."
    raise NotFoundError(f"Document not found: {normalised}", suggestion=suggestion)


def parse_headings(content: str) -> list[Heading]:
    """Extract H1 to H6 headings, skipping anything inside fenced code blocks."""
    headings: list[Heading] = []

    in_code_block = False
    fence: str | None = None

    for lineno, line in enumerate(content.splitlines(), start=1):
        stripped = line.strip()

        if stripped.startswith("```") or stripped.startswith("~~~"):
            current_fence = stripped[:3]
            if not in_code_block:
                in_code_block = True
                fence = current_fence
            elif current_fence == fence:
                in_code_block = False
                fence = None
            continue

        if in_code_block:
            continue

        match = _HEADING_RE.match(line)
        if not match:
            continue

        title = match.group(2).strip()
        headings.append(
            Heading(
                line_number=lineno,
                level=len(match.group(1)),
                title=title,
                anchor=slugify(title),
            )
        )

    return headings


def extract_section(content: str, anchor: str) -> str:
    """Return the text from the heading matching ``anchor`` up to the next heading.

    Raises NotFoundError (SECTION_NOT_FOUND) when no heading matches.
    """
    target = slugify(anchor)
    headings = parse_headings(content)

    for position, heading in enumerate(headings):
        if heading.anchor != target:
            continue
        lines = content.splitlines()
        start = heading.line_number - 1
        end = headings[position + 1].line_number - 1 if position + 1 < len(headings) else len(lines)
        return "\n".join(lines[start:end]).strip()

    available = ", ".join(h.anchor for h in headings[:10])
    raise NotFoundError(
        f"Section not found: #{anchor}",
        code=ErrorCode.SECTION_NOT_FOUND,
        suggestion=f"Available sections: {available}" if available else "This document has no sections.",
    )
