"""Tool handler for list_docs.

Without an argument, returns the resolved catalog grouped by category along
with which documents are present locally. With a document name, returns that
document's heading outline instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from docmirror.fileops import read_lines
from docmirror.lookup import parse_headings, resolve_document
from docmirror.models.tools import DocumentOutline, ListDocsOutput
from docmirror.resources import total_sections

if TYPE_CHECKING:
    from docmirror.state import AppState


async def handle(state: AppState, document: str | None = None) -> dict:
    """Handle a list_docs tool call."""
    log = structlog.get_logger().bind(tool="list_docs", document=document)
    log.info("handler_called")

    docs_dir = state.paths.docs_dir
    installed = sorted(p.name for p in docs_dir.glob("*.md")) if docs_dir.is_dir() else []

    if document:
        filename = resolve_document(document, installed)
        content = state.paths.doc_path(filename).read_text(encoding="utf-8")
        outline = DocumentOutline(filename=filename, headings=parse_headings(content))
        return outline.model_dump(mode="json")

    config = await state.resolver.load()
    log.info("list_complete", total=total_sections(config), installed=len(installed))

    output = ListDocsOutput(
        total=total_sections(config),
        categories=config.categories,
        installed=installed,
        missing=read_lines(state.paths.missing_docs_file),
    )
    return output.model_dump(mode="json")
