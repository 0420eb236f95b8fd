"""Tool handler for cache_clear.

Entries are rebuilt from the Live Documents on next access, so clearing is
always safe.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from docmirror.models.tools import CacheClearOutput

if TYPE_CHECKING:
    from docmirror.state import AppState


async def handle(state: AppState) -> dict:
    log = structlog.get_logger().bind(tool="cache_clear")
    log.info("handler_called")

    before = await state.cache.stats()
    await state.cache.clear()

    output = CacheClearOutput(cache_dir=str(state.paths.cache_dir), removed=before.file_count)
    return output.model_dump(mode="json")
