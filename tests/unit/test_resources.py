"""Unit tests for catalog resolution: parsing, grouping and the fallback chain."""

from __future__ import annotations

import os
import time
from typing import TYPE_CHECKING

import pytest

from docmirror.errors import ConfigurationError, ValidationError
from docmirror.models.catalog import CategoryMapping, CategoryMappingEntry
from docmirror.resources import (
    ResourceResolver,
    apply_category_mapping,
    build_config,
    iter_documents,
    load_bundled_categories,
    load_bundled_llms_txt,
    parse_llms_txt,
    total_sections,
    validate_resource_config,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from docmirror.config import Settings
    from docmirror.paths import DataPaths

    from tests.conftest import FakeFetcher


def _mapping(*entries: CategoryMappingEntry) -> CategoryMapping:
    return CategoryMapping(categories=list(entries))


UNCATEGORIZED = CategoryMappingEntry(name="Other", slug="uncategorized", description="Misc")


# ---------------------------------------------------------------------------
# parse_llms_txt
# ---------------------------------------------------------------------------


class TestParseLlmsTxt:
    def test_parses_document_lines(self, sample_llms_txt: str) -> None:
        docs = parse_llms_txt(sample_llms_txt)

        assert [d.filename for d in docs] == ["overview.md", "hooks.md", "settings.md"]
        assert docs[1].title == "Hooks reference"
        assert docs[1].url == "https://docs.example.com/en/hooks.md"
        assert docs[1].description == "Run shell commands on lifecycle events."

    def test_ignores_non_document_lines(self) -> None:
        text = "# Title\n\n> quote\n- plain bullet\n- [Doc](https://x.dev/a.md): Desc\n"
        assert [d.filename for d in parse_llms_txt(text)] == ["a.md"]

    def test_empty_manifest_is_invalid(self) -> None:
        with pytest.raises(ValidationError):
            parse_llms_txt("<html>Service unavailable</html>")


# ---------------------------------------------------------------------------
# apply_category_mapping
# ---------------------------------------------------------------------------


class TestApplyCategoryMapping:
    def test_groups_by_url_and_preserves_mapping_order(self, sample_llms_txt: str) -> None:
        docs = parse_llms_txt(sample_llms_txt)
        mapping = _mapping(
            CategoryMappingEntry(
                name="Reference",
                slug="reference",
                description="Reference docs",
                url_patterns=["https://docs.example.com/en/hooks.md"],
            ),
            CategoryMappingEntry(
                name="Start",
                slug="start",
                description="Getting started",
                url_patterns=["https://docs.example.com/en/overview.md"],
            ),
            UNCATEGORIZED,
        )

        config = apply_category_mapping(docs, mapping)

        assert [c.slug for c in config.categories] == ["reference", "start", "uncategorized"]
        assert [d.filename for d in config.categories[2].docs] == ["settings.md"]

    def test_empty_categories_dropped(self, sample_llms_txt: str) -> None:
        docs = parse_llms_txt(sample_llms_txt)
        mapping = _mapping(
            CategoryMappingEntry(name="Empty", slug="empty", description="Nothing"),
            UNCATEGORIZED,
        )
        config = apply_category_mapping(docs, mapping)
        assert [c.slug for c in config.categories] == ["uncategorized"]

    def test_missing_uncategorized_rejected(self, sample_llms_txt: str) -> None:
        docs = parse_llms_txt(sample_llms_txt)
        mapping = _mapping(CategoryMappingEntry(name="A", slug="a", description="A"))
        with pytest.raises(ValidationError, match="uncategorized"):
            apply_category_mapping(docs, mapping)


# ---------------------------------------------------------------------------
# Validation and bundled data
# ---------------------------------------------------------------------------


class TestValidation:
    def test_valid_dict(self) -> None:
        config = {
            "categories": [
                {
                    "name": "A",
                    "slug": "a",
                    "description": "A docs",
                    "docs": [
                        {
                            "title": "T",
                            "url": "https://x.dev/t.md",
                            "filename": "t.md",
                            "description": "D",
                        }
                    ],
                }
            ]
        }
        assert validate_resource_config(config) is True

    @pytest.mark.parametrize(
        "config",
        [
            {},
            {"categories": "nope"},
            {"categories": [{"name": "A", "docs": []}]},
            {"categories": [{"name": "", "slug": "a", "description": "d", "docs": []}]},
        ],
    )
    def test_invalid_structures(self, config: dict) -> None:
        assert validate_resource_config(config) is False

    def test_bundled_manifest_is_valid(self) -> None:
        config = build_config(load_bundled_llms_txt())

        assert validate_resource_config(config) is True
        assert total_sections(config) > 0
        filenames = [d.filename for d in iter_documents(config)]
        assert len(filenames) == len(set(filenames))

    def test_bundled_categories_end_with_uncategorized(self) -> None:
        mapping = load_bundled_categories()
        assert mapping.categories[-1].slug == "uncategorized"


# ---------------------------------------------------------------------------
# ResourceResolver fallback chain
# ---------------------------------------------------------------------------


class TestResourceResolver:
    async def test_remote_success_writes_manifest_cache(
        self,
        resolver: ResourceResolver,
        fetcher: FakeFetcher,
        paths: DataPaths,
        manifest_url: str,
        sample_llms_txt: str,
    ) -> None:
        config = await resolver.load()

        assert total_sections(config) == 3
        assert fetcher.calls == [manifest_url]
        assert paths.manifest_cache_file.read_text(encoding="utf-8") == sample_llms_txt

    async def test_fresh_manifest_cache_skips_network(
        self,
        resolver: ResourceResolver,
        fetcher: FakeFetcher,
        paths: DataPaths,
        sample_llms_txt: str,
    ) -> None:
        paths.root.mkdir(parents=True)
        paths.manifest_cache_file.write_text(sample_llms_txt, encoding="utf-8")

        config = await resolver.load()

        assert total_sections(config) == 3
        assert fetcher.calls == []

    async def test_expired_manifest_cache_refetches(
        self,
        resolver: ResourceResolver,
        fetcher: FakeFetcher,
        paths: DataPaths,
        manifest_url: str,
        sample_llms_txt: str,
    ) -> None:
        paths.root.mkdir(parents=True)
        paths.manifest_cache_file.write_text(sample_llms_txt, encoding="utf-8")
        stale = time.time() - 2 * 60 * 60
        os.utime(paths.manifest_cache_file, (stale, stale))

        await resolver.load()

        assert fetcher.calls == [manifest_url]

    async def test_remote_failure_falls_back_to_bundled(
        self,
        make_fetcher: Callable[..., FakeFetcher],
        paths: DataPaths,
        settings: Settings,
    ) -> None:
        resolver = ResourceResolver(make_fetcher({}), paths, settings.resources)

        config = await resolver.load()

        assert validate_resource_config(config) is True
        assert total_sections(config) == total_sections(build_config(load_bundled_llms_txt()))
        assert not paths.manifest_cache_file.exists()

    async def test_invalid_remote_falls_back_to_bundled(
        self,
        make_fetcher: Callable[..., FakeFetcher],
        paths: DataPaths,
        settings: Settings,
        manifest_url: str,
    ) -> None:
        fetcher = make_fetcher({manifest_url: "<html>maintenance</html>"})
        resolver = ResourceResolver(fetcher, paths, settings.resources)

        config = await resolver.load()

        assert total_sections(config) > 0
        assert not paths.manifest_cache_file.exists()

    async def test_corrupt_manifest_cache_falls_through(
        self,
        resolver: ResourceResolver,
        fetcher: FakeFetcher,
        paths: DataPaths,
        manifest_url: str,
    ) -> None:
        paths.root.mkdir(parents=True)
        paths.manifest_cache_file.write_text("not a manifest", encoding="utf-8")

        config = await resolver.load()

        assert total_sections(config) == 3
        assert fetcher.calls == [manifest_url]

    async def test_all_tiers_failing_raises_configuration_error(
        self,
        make_fetcher: Callable[..., FakeFetcher],
        paths: DataPaths,
        settings: Settings,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def _broken_bundle() -> str:
            raise OSError("bundled manifest missing")

        monkeypatch.setattr("docmirror.resources.load_bundled_llms_txt", _broken_bundle)
        resolver = ResourceResolver(make_fetcher({}), paths, settings.resources)

        with pytest.raises(ConfigurationError) as exc_info:
            await resolver.load()

        assert "Remote:" in exc_info.value.message
        assert "bundled manifest missing" in exc_info.value.message
