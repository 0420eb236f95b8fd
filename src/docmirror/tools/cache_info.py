"""Tool handler for cache_info."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from docmirror.models.tools import CacheInfoOutput

if TYPE_CHECKING:
    from docmirror.state import AppState


async def handle(state: AppState) -> dict:
    log = structlog.get_logger().bind(tool="cache_info")
    log.info("handler_called")

    stats = await state.cache.stats()
    output = CacheInfoOutput(
        cache_dir=str(state.paths.cache_dir),
        file_count=stats.file_count,
        total_bytes=stats.total_bytes,
    )
    return output.model_dump(mode="json")
