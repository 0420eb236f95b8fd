"""Tool handler for search_docs."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from docmirror.errors import DocMirrorError, ErrorCode
from docmirror.models.tools import SearchDocsInput, SearchDocsOutput
from docmirror.search import search_documents

if TYPE_CHECKING:
    from docmirror.state import AppState


async def handle(
    query: str,
    state: AppState,
    context_lines: int = 5,
    max_results: int = 50,
) -> dict:
    """Handle a search_docs tool call."""
    log = structlog.get_logger().bind(tool="search_docs", query=query)
    log.info("handler_called")

    try:
        validated = SearchDocsInput(
            query=query, context_lines=context_lines, max_results=max_results
        )
    except ValueError as exc:
        raise DocMirrorError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a non-empty query (max 500 chars) and 0-50 context lines.",
            recoverable=False,
        ) from exc

    results = search_documents(
        state.paths.docs_dir,
        validated.query,
        context_lines=validated.context_lines,
    )
    log.info("search_complete", match_count=len(results))

    output = SearchDocsOutput(
        query=validated.query,
        total_matches=len(results),
        results=results[: validated.max_results],
    )
    return output.model_dump(mode="json")
