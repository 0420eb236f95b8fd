"""Unit tests for the file-backed ContentCache.

Every test points the cache at an isolated tmp data directory.
"""

from __future__ import annotations

import json
import os
import time
from typing import TYPE_CHECKING

import pytest

from docmirror.cache import (
    CACHE_VERSION,
    ContentCache,
    is_generated,
    parse_entry,
    serialize_entry,
)
from docmirror.errors import CorruptionError, NotFoundError
from docmirror.models.cache import CacheMetadata

if TYPE_CHECKING:
    from docmirror.paths import DataPaths

SOURCE_URL = "https://docs.example.com/en/hooks.md"


def _write_live(paths: DataPaths, filename: str, content: str, *, age_seconds: float = 60) -> None:
    """Create a Live Document whose mtime lies safely in the past."""
    path = paths.doc_path(filename)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    past = time.time() - age_seconds
    os.utime(path, (past, past))


def _metadata(paths: DataPaths, filename: str, **overrides: object) -> CacheMetadata:
    fields: dict[str, object] = {
        "version": CACHE_VERSION,
        "timestamp_ms": int(time.time() * 1000),
        "source_file_path": str(paths.doc_path(filename)),
        "source_url": SOURCE_URL,
        "cache_path": str(paths.cache_path(filename)),
    }
    fields.update(overrides)
    return CacheMetadata(**fields)


# ---------------------------------------------------------------------------
# Entry format
# ---------------------------------------------------------------------------


class TestEntryFormat:
    def test_header_is_json_in_html_comment(self, paths: DataPaths) -> None:
        raw = serialize_entry("# Body\n", _metadata(paths, "hooks.md"))

        assert raw.startswith("<!--- CACHE METADATA\n")
        header = raw.split("\n", 1)[1].split("-->\n", 1)[0]
        data = json.loads(header)
        assert set(data) == {"version", "timestamp", "sourceFile", "sourceUrl", "cachePath"}
        assert raw.endswith("-->\n# Body\n")

    def test_parse_round_trip(self, paths: DataPaths) -> None:
        metadata = _metadata(paths, "hooks.md")
        parsed, content = parse_entry(serialize_entry("hello", metadata))
        assert parsed == metadata
        assert content == "hello"

    def test_missing_header_is_corrupt(self) -> None:
        with pytest.raises(CorruptionError):
            parse_entry("# Just markdown\n")

    def test_unterminated_header_is_corrupt(self) -> None:
        with pytest.raises(CorruptionError):
            parse_entry('<!--- CACHE METADATA\n{"version": "1.0.0"}\n')

    def test_malformed_json_is_corrupt(self) -> None:
        with pytest.raises(CorruptionError):
            parse_entry("<!--- CACHE METADATA\n{not json\n-->\nbody")

    def test_generated_markers(self, paths: DataPaths) -> None:
        assert is_generated(_metadata(paths, "x", source_url="list-command"))
        assert is_generated(_metadata(paths, "x", source_url="search-command"))
        assert is_generated(_metadata(paths, "x", source_file_path="/data/__index__.md"))
        assert not is_generated(_metadata(paths, "hooks.md"))


# ---------------------------------------------------------------------------
# read / write
# ---------------------------------------------------------------------------


class TestReadWrite:
    async def test_write_then_read_returns_content(
        self, cache: ContentCache, paths: DataPaths
    ) -> None:
        _write_live(paths, "hooks.md", "# Hooks\n")
        await cache.write("hooks.md", "# Hooks (rendered)\n", SOURCE_URL)

        assert await cache.read("hooks.md") == "# Hooks (rendered)\n"

    async def test_read_absent_returns_none(self, cache: ContentCache) -> None:
        assert await cache.read("nope.md") is None

    async def test_live_document_mutation_invalidates(
        self, cache: ContentCache, paths: DataPaths
    ) -> None:
        _write_live(paths, "hooks.md", "# Hooks\n")
        await cache.write("hooks.md", "# Hooks\n", SOURCE_URL)

        live = paths.doc_path("hooks.md")
        live.write_text("# Hooks v2\n", encoding="utf-8")
        future = time.time() + 60
        os.utime(live, (future, future))

        assert await cache.read("hooks.md") is None

    async def test_missing_live_document_invalidates(
        self, cache: ContentCache, paths: DataPaths
    ) -> None:
        _write_live(paths, "hooks.md", "# Hooks\n")
        await cache.write("hooks.md", "# Hooks\n", SOURCE_URL)
        paths.doc_path("hooks.md").unlink()

        assert await cache.read("hooks.md") is None

    async def test_version_mismatch_is_a_miss(self, cache: ContentCache, paths: DataPaths) -> None:
        _write_live(paths, "hooks.md", "# Hooks\n")
        entry = serialize_entry("old", _metadata(paths, "hooks.md", version="0.9.0"))
        paths.cache_dir.mkdir(parents=True)
        paths.cache_path("hooks.md").write_text(entry, encoding="utf-8")

        assert await cache.read("hooks.md") is None

    async def test_corrupt_entry_is_a_miss(self, cache: ContentCache, paths: DataPaths) -> None:
        paths.cache_dir.mkdir(parents=True)
        paths.cache_path("hooks.md").write_text("garbage", encoding="utf-8")

        assert await cache.read("hooks.md") is None

    async def test_generated_entry_valid_without_live_document(
        self, cache: ContentCache, paths: DataPaths
    ) -> None:
        await cache.write("__index__.md", "catalog listing", "list-command")

        assert await cache.read("__index__.md") == "catalog listing"


# ---------------------------------------------------------------------------
# get_or_generate / warm
# ---------------------------------------------------------------------------


class TestGetOrGenerate:
    async def test_miss_regenerates_through_transform(self, paths: DataPaths) -> None:
        calls: list[str] = []

        def _upper(content: str) -> str:
            calls.append(content)
            return content.upper()

        cache = ContentCache(paths, transform=_upper)
        _write_live(paths, "hooks.md", "# hooks\n")

        first = await cache.get_or_generate("hooks.md", SOURCE_URL)
        second = await cache.get_or_generate("hooks.md", SOURCE_URL)

        assert first == second == "# HOOKS\n"
        assert calls == ["# hooks\n"]
        assert paths.cache_path("hooks.md").is_file()

    async def test_regenerates_after_corruption(
        self, cache: ContentCache, paths: DataPaths
    ) -> None:
        _write_live(paths, "hooks.md", "# Hooks\n")
        paths.cache_dir.mkdir(parents=True)
        paths.cache_path("hooks.md").write_text("<!--- CACHE METADATA\n{", encoding="utf-8")

        assert await cache.get_or_generate("hooks.md", SOURCE_URL) == "# Hooks\n"
        assert await cache.read("hooks.md") == "# Hooks\n"

    async def test_missing_live_document_raises(self, cache: ContentCache) -> None:
        with pytest.raises(NotFoundError):
            await cache.get_or_generate("missing.md", SOURCE_URL)

    async def test_warm_skips_failures(self, cache: ContentCache, paths: DataPaths) -> None:
        _write_live(paths, "a.md", "A")
        _write_live(paths, "b.md", "B")

        warmed = await cache.warm(["a.md", "missing.md", "b.md"], {"a.md": SOURCE_URL})

        assert warmed == 2
        assert await cache.read("a.md") == "A"
        assert await cache.read("b.md") == "B"


# ---------------------------------------------------------------------------
# clear / stats
# ---------------------------------------------------------------------------


class TestClearAndStats:
    async def test_clear_without_cache_dir_is_noop(self, cache: ContentCache) -> None:
        await cache.clear()
        await cache.clear()

    async def test_clear_removes_entries(self, cache: ContentCache, paths: DataPaths) -> None:
        _write_live(paths, "a.md", "A")
        await cache.get_or_generate("a.md", SOURCE_URL)
        await cache.clear()

        assert (await cache.stats()).file_count == 0
        assert await cache.read("a.md") is None

    async def test_stats(self, cache: ContentCache, paths: DataPaths) -> None:
        assert (await cache.stats()).file_count == 0

        _write_live(paths, "a.md", "A")
        _write_live(paths, "b.md", "BB")
        await cache.warm(["a.md", "b.md"], {})

        stats = await cache.stats()
        assert stats.file_count == 2
        expected = sum(p.stat().st_size for p in paths.cache_dir.iterdir())
        assert stats.total_bytes == expected
