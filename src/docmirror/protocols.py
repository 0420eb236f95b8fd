"""Protocol interfaces for swappable components.

The orchestrator and tool handlers reference these protocols, not the
concrete implementations. This allows:
- Tests to use lightweight in-memory fakes
- Other cache backends to be swapped in without changing callers
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from docmirror.models.cache import CacheStats

# Markdown rewriting pipeline supplied by the caller: raw content in, content out.
Transform = Callable[[str], str]


def identity_transform(content: str) -> str:
    return content


class FetcherProtocol(Protocol):
    """Interface for the retrying HTTP fetcher."""

    async def fetch(
        self,
        url: str,
        *,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        timeout: float | None = None,
    ) -> str: ...


class ContentCacheProtocol(Protocol):
    """Interface for the derived-content cache."""

    async def write(self, filename: str, content: str, source_url: str) -> None: ...

    async def read(self, filename: str) -> str | None: ...

    async def get_or_generate(self, filename: str, source_url: str) -> str: ...

    async def clear(self) -> None: ...

    async def stats(self) -> CacheStats: ...

    async def warm(self, filenames: list[str], source_urls: dict[str, str]) -> int: ...
