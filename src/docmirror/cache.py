"""File-backed content cache with a self-describing metadata header.

Each cache file is a JSON metadata header wrapped in an HTML comment,
followed by the derived content::

    <!--- CACHE METADATA
    {"version": "1.0.0", "timestamp": 1718000000000, ...}
    -->
    # Document body...

Any single file can be validated without consulting external state. Read
failures never cross the ContentCache boundary: a missing, malformed,
outdated or stale entry is a cache miss and gets regenerated from the Live
Document on the next ``get_or_generate``.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError as PydanticValidationError

from docmirror.errors import CorruptionError, NotFoundError
from docmirror.fileops import atomic_write_text
from docmirror.models.cache import CacheMetadata, CacheStats
from docmirror.protocols import identity_transform

if TYPE_CHECKING:
    from docmirror.paths import DataPaths
    from docmirror.protocols import Transform

log = structlog.get_logger()

# Bump when the on-disk format changes; older entries then read as misses.
CACHE_VERSION = "1.0.0"

_HEADER_START = "<!--- CACHE METADATA\n"
_HEADER_END = "-->\n"

# Caches derived from the whole catalog rather than a single Live Document.
GENERATED_SOURCE_URLS = frozenset({"list-command", "search-command"})
_GENERATED_PATH_MARKERS = ("__index__", "__toc__")


def serialize_entry(content: str, metadata: CacheMetadata) -> str:
    header = metadata.model_dump_json(by_alias=True, indent=2)
    return f"{_HEADER_START}{header}\n{_HEADER_END}{content}"


def parse_entry(raw: str) -> tuple[CacheMetadata, str]:
    """Split a cache file into metadata and content.

    Raises CorruptionError when the header is missing or unreadable.
    """
    if not raw.startswith(_HEADER_START):
        raise CorruptionError("cache entry has no metadata header")

    header_end = raw.find(_HEADER_END, len(_HEADER_START))
    if header_end == -1:
        raise CorruptionError("cache metadata header is not terminated")

    header_json = raw[len(_HEADER_START) : header_end].strip()
    try:
        metadata = CacheMetadata.model_validate_json(header_json)
    except PydanticValidationError as exc:
        raise CorruptionError(f"cache metadata is malformed: {exc}") from exc

    return metadata, raw[header_end + len(_HEADER_END) :]


def is_generated(metadata: CacheMetadata) -> bool:
    return metadata.source_url in GENERATED_SOURCE_URLS or any(
        marker in metadata.source_file_path for marker in _GENERATED_PATH_MARKERS
    )


class ContentCache:
    """Derived-content cache implementing ContentCacheProtocol."""

    def __init__(self, paths: DataPaths, transform: Transform = identity_transform) -> None:
        self._paths = paths
        self._transform = transform

    def _metadata_for(self, filename: str, source_url: str) -> CacheMetadata:
        return CacheMetadata(
            version=CACHE_VERSION,
            timestamp_ms=int(time.time() * 1000),
            source_file_path=str(self._paths.doc_path(filename)),
            source_url=source_url,
            cache_path=str(self._paths.cache_path(filename)),
        )

    def _is_valid(self, metadata: CacheMetadata) -> bool:
        if metadata.version != CACHE_VERSION:
            return False

        # Generated caches stay valid until explicitly cleared.
        if is_generated(metadata):
            return True

        try:
            source_stat = Path(metadata.source_file_path).stat()
        except OSError:
            return False

        source_mtime_ms = source_stat.st_mtime_ns // 1_000_000
        return metadata.timestamp_ms >= source_mtime_ms

    async def write(self, filename: str, content: str, source_url: str) -> None:
        """Write an entry, replacing any previous one. Raises OSError on I/O failure."""
        metadata = self._metadata_for(filename, source_url)
        atomic_write_text(self._paths.cache_path(filename), serialize_entry(content, metadata))
        log.debug("cache_write", filename=filename, content_length=len(content))

    async def read(self, filename: str) -> str | None:
        """Return cached content, or ``None`` on any kind of miss."""
        cache_path = self._paths.cache_path(filename)
        if not cache_path.is_file():
            return None

        try:
            metadata, content = parse_entry(cache_path.read_text(encoding="utf-8"))
        except CorruptionError as exc:
            log.warning("cache_entry_corrupt", filename=filename, reason=exc.message)
            return None
        except (OSError, UnicodeDecodeError):
            log.warning("cache_read_error", filename=filename, exc_info=True)
            return None

        if not self._is_valid(metadata):
            log.debug("cache_entry_stale", filename=filename, version=metadata.version)
            return None

        return content

    async def get_or_generate(self, filename: str, source_url: str) -> str:
        """Serve from cache, regenerating from the Live Document on a miss."""
        cached = await self.read(filename)
        if cached is not None:
            log.debug("cache_hit", filename=filename)
            return cached

        source_path = self._paths.doc_path(filename)
        if not source_path.is_file():
            raise NotFoundError(f"Document not found: {filename}")

        log.debug("cache_miss", filename=filename)
        content = self._transform(source_path.read_text(encoding="utf-8"))
        await self.write(filename, content, source_url)
        return content

    async def clear(self) -> None:
        """Delete every cache entry. No-op when the cache directory is absent."""
        cache_dir = self._paths.cache_dir
        if not cache_dir.is_dir():
            return

        removed = 0
        for entry in cache_dir.iterdir():
            if entry.is_file():
                entry.unlink(missing_ok=True)
                removed += 1
        log.info("cache_cleared", removed=removed)

    async def stats(self) -> CacheStats:
        cache_dir = self._paths.cache_dir
        if not cache_dir.is_dir():
            return CacheStats()

        files = [entry for entry in cache_dir.iterdir() if entry.is_file()]
        return CacheStats(
            file_count=len(files),
            total_bytes=sum(entry.stat().st_size for entry in files),
        )

    async def warm(self, filenames: list[str], source_urls: dict[str, str]) -> int:
        """Pre-generate entries. One failing document never aborts the batch.

        Returns the number of entries that are now cached.
        """
        warmed = 0
        for filename in filenames:
            try:
                await self.get_or_generate(filename, source_urls.get(filename, ""))
                warmed += 1
            except (NotFoundError, OSError, UnicodeDecodeError) as exc:
                log.debug("cache_warm_skipped", filename=filename, error=str(exc))
        log.info("cache_warmed", warmed=warmed, total=len(filenames))
        return warmed
