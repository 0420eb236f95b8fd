"""Tool handler for get_doc.

Receives AppState, resolves ``slug#anchor`` to a Live Document, serves it
through the content cache, and returns a structured dict. Formatting is left
to the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urljoin

import structlog

from docmirror.errors import DocMirrorError, ErrorCode
from docmirror.lookup import extract_section, parse_headings, resolve_document, split_reference
from docmirror.models.tools import GetDocInput, GetDocOutput

if TYPE_CHECKING:
    from docmirror.config import Settings
    from docmirror.state import AppState


def source_url_for(settings: Settings, filename: str) -> str:
    """Remote URL a Live Document was mirrored from, recorded in cache metadata."""
    return urljoin(settings.resources.remote_url, f"en/{filename}")


async def handle(reference: str, state: AppState) -> dict:
    """Handle a get_doc tool call."""
    log = structlog.get_logger().bind(tool="get_doc", reference=reference)
    log.info("handler_called")

    try:
        validated = GetDocInput(reference=reference)
    except ValueError as exc:
        raise DocMirrorError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Pass a document slug, optionally followed by #section.",
            recoverable=False,
        ) from exc

    slug, anchor = split_reference(validated.reference)

    docs_dir = state.paths.docs_dir
    filenames = sorted(p.name for p in docs_dir.glob("*.md")) if docs_dir.is_dir() else []
    filename = resolve_document(slug, filenames)

    content = await state.cache.get_or_generate(filename, source_url_for(state.settings, filename))
    if anchor is not None:
        content = extract_section(content, anchor)

    status = await state.orchestrator.status()
    log.info("get_complete", filename=filename, anchor=anchor, content_length=len(content))

    output = GetDocOutput(
        slug=slug.removesuffix(".md"),
        filename=filename,
        anchor=anchor,
        content=content,
        section_count=len(parse_headings(content)),
        last_update=status.last_update,
        reminder=status.reminder,
    )
    return output.model_dump(mode="json")
