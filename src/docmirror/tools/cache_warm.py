"""Tool handler for cache_warm: pre-generate entries for every catalog document."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from docmirror.models.tools import CacheWarmOutput
from docmirror.resources import iter_documents

if TYPE_CHECKING:
    from docmirror.state import AppState


async def handle(state: AppState) -> dict:
    log = structlog.get_logger().bind(tool="cache_warm")
    log.info("handler_called")

    config = await state.resolver.load()
    source_urls = {doc.filename: doc.url for doc in iter_documents(config)}

    # Documents not yet downloaded are skipped by the cache, not counted.
    warmed = await state.cache.warm(list(source_urls), source_urls)

    output = CacheWarmOutput(total=len(source_urls), warmed=warmed)
    return output.model_dump(mode="json")
