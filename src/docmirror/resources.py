"""Catalog resolution: short-lived local cache, then remote manifest, then bundle.

The manifest is an llms.txt index (``- [Title](URL): Description`` per
document). Documents are grouped into categories using the bundled
``categories.json`` mapping, which this package controls; only the document
list comes from the remote.
"""

from __future__ import annotations

import json
import re
import time
from importlib.resources import files
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import structlog
from pydantic import ValidationError as PydanticValidationError

from docmirror.errors import ConfigurationError, DocMirrorError, ValidationError
from docmirror.fileops import atomic_write_text
from docmirror.models.catalog import (
    Category,
    CategoryMapping,
    DocumentSection,
    ResourceConfiguration,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from docmirror.config import ResourceSettings
    from docmirror.paths import DataPaths
    from docmirror.protocols import FetcherProtocol

log = structlog.get_logger()

UNCATEGORIZED_SLUG = "uncategorized"

_DOC_LINE_RE = re.compile(r"^-\s+\[([^\]]+)\]\(([^)]+)\):\s+(.+)$")

# Anything that means "this tier produced no usable catalog".
_TIER_ERRORS = (DocMirrorError, PydanticValidationError, ValueError, OSError)


# ---------------------------------------------------------------------------
# Parsing and validation
# ---------------------------------------------------------------------------


def parse_llms_txt(content: str) -> list[DocumentSection]:
    """Parse llms.txt lines into document sections.

    The filename is the last path segment of the document URL. Raises
    ValidationError when the manifest lists no documents at all.
    """
    documents: list[DocumentSection] = []
    for line in content.splitlines():
        match = _DOC_LINE_RE.match(line.strip())
        if not match:
            continue
        title, url, description = (group.strip() for group in match.groups())
        filename = urlparse(url).path.rsplit("/", 1)[-1]
        documents.append(
            DocumentSection(title=title, url=url, filename=filename, description=description)
        )

    if not documents:
        raise ValidationError("Manifest does not list any documents")
    return documents


def apply_category_mapping(
    documents: list[DocumentSection], mapping: CategoryMapping
) -> ResourceConfiguration:
    """Group documents by the URL patterns in ``mapping``.

    Category order follows the mapping. Unmapped documents go to the
    ``uncategorized`` category, which is placed where the mapping lists it.
    Empty categories are dropped.
    """
    uncategorized = next((c for c in mapping.categories if c.slug == UNCATEGORIZED_SLUG), None)
    if uncategorized is None:
        raise ValidationError(f'categories.json missing "{UNCATEGORIZED_SLUG}" category')

    url_to_slug: dict[str, str] = {}
    for category in mapping.categories:
        if category.slug == UNCATEGORIZED_SLUG:
            continue
        for pattern in category.url_patterns:
            url_to_slug[pattern] = category.slug

    docs_by_slug: dict[str, list[DocumentSection]] = {c.slug: [] for c in mapping.categories}
    for doc in documents:
        docs_by_slug[url_to_slug.get(doc.url, UNCATEGORIZED_SLUG)].append(doc)

    categories = [
        Category(
            name=entry.name,
            slug=entry.slug,
            description=entry.description,
            docs=docs_by_slug[entry.slug],
        )
        for entry in mapping.categories
        if docs_by_slug[entry.slug]
    ]
    return ResourceConfiguration(categories=categories)


def validate_resource_config(config: Any) -> bool:
    """Return True when ``config`` matches the catalog's structural schema."""
    if isinstance(config, ResourceConfiguration):
        config = config.model_dump()
    try:
        ResourceConfiguration.model_validate(config)
    except PydanticValidationError:
        return False
    return True


def iter_documents(config: ResourceConfiguration) -> Iterator[DocumentSection]:
    for category in config.categories:
        yield from category.docs


def total_sections(config: ResourceConfiguration) -> int:
    return sum(len(category.docs) for category in config.categories)


# ---------------------------------------------------------------------------
# Bundled manifest
# ---------------------------------------------------------------------------


def load_bundled_llms_txt() -> str:
    return files("docmirror.data").joinpath("llms.txt").read_text(encoding="utf-8")


def load_bundled_categories() -> CategoryMapping:
    text = files("docmirror.data").joinpath("categories.json").read_text(encoding="utf-8")
    return CategoryMapping.model_validate(json.loads(text))


def build_config(llms_txt: str, mapping: CategoryMapping | None = None) -> ResourceConfiguration:
    """Parse a manifest and group it. Raises on any structural problem."""
    documents = parse_llms_txt(llms_txt)
    config = apply_category_mapping(documents, mapping or load_bundled_categories())
    if not validate_resource_config(config):
        raise ValidationError("Generated config has invalid structure")
    return config


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class ResourceResolver:
    """Produces the authoritative catalog. Falls back tier by tier."""

    def __init__(
        self,
        fetcher: FetcherProtocol,
        paths: DataPaths,
        settings: ResourceSettings,
    ) -> None:
        self._fetcher = fetcher
        self._paths = paths
        self._settings = settings

    def _load_cached(self) -> ResourceConfiguration | None:
        cache_file = self._paths.manifest_cache_file
        if not cache_file.is_file():
            return None

        try:
            age_seconds = time.time() - cache_file.stat().st_mtime
            if age_seconds > self._settings.cache_ttl_seconds:
                log.debug("manifest_cache_expired", age_seconds=round(age_seconds))
                return None
            config = build_config(cache_file.read_text(encoding="utf-8"))
        except _TIER_ERRORS:
            log.warning("manifest_cache_invalid", path=str(cache_file), exc_info=True)
            return None

        log.info("catalog_loaded", source="cache", sections=total_sections(config))
        return config

    async def _load_remote(self) -> ResourceConfiguration:
        content = await self._fetcher.fetch(
            self._settings.remote_url,
            max_retries=self._settings.max_retries,
            timeout=self._settings.timeout_seconds,
        )
        config = build_config(content)

        try:
            atomic_write_text(self._paths.manifest_cache_file, content)
        except OSError:
            # The catalog is still usable; only the next load loses the shortcut.
            log.warning("manifest_cache_write_failed", exc_info=True)

        log.info("catalog_loaded", source="remote", sections=total_sections(config))
        return config

    def _load_bundled(self) -> ResourceConfiguration:
        config = build_config(load_bundled_llms_txt())
        log.info("catalog_loaded", source="bundled", sections=total_sections(config))
        return config

    async def load(self) -> ResourceConfiguration:
        """Resolve the catalog. Raises ConfigurationError only if every tier fails."""
        cached = self._load_cached()
        if cached is not None:
            return cached

        try:
            return await self._load_remote()
        except _TIER_ERRORS as remote_exc:
            remote_error = _describe(remote_exc)
            log.warning("catalog_remote_failed", url=self._settings.remote_url, error=remote_error)

        try:
            return self._load_bundled()
        except _TIER_ERRORS as bundled_exc:
            raise ConfigurationError(
                "Failed to load resource configuration. "
                f"Remote: {remote_error}, Bundled: {_describe(bundled_exc)}"
            ) from bundled_exc


def _describe(exc: BaseException) -> str:
    if isinstance(exc, DocMirrorError):
        return exc.message
    return str(exc) or type(exc).__name__
