"""Shared test fixtures for the docmirror test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from docmirror.cache import ContentCache
from docmirror.changelog import ChangelogLedger
from docmirror.config import FetcherSettings, PathSettings, ResourceSettings, Settings
from docmirror.errors import NetworkError
from docmirror.paths import DataPaths
from docmirror.resources import ResourceResolver
from docmirror.updater import UpdateOrchestrator

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

MANIFEST_URL = "https://docs.example.com/llms.txt"

SAMPLE_LLMS_TXT = """\
# Example Docs

> Documentation for an example product.

## Docs

- [Overview](https://docs.example.com/en/overview.md): What the product is and who it is for.
- [Hooks reference](https://docs.example.com/en/hooks.md): Run shell commands on lifecycle events.
- [Settings](https://docs.example.com/en/settings.md): Configure global and project behaviour.
"""

SAMPLE_DOCS = {
    "https://docs.example.com/en/overview.md": "# Overview\n\nExample is a tool for examples.\n",
    "https://docs.example.com/en/hooks.md": (
        "# Hooks reference\n"
        "\n"
        "Hooks run shell commands.\n"
        "\n"
        "## Configuration\n"
        "\n"
        "Hooks are configured in settings files.\n"
        "\n"
        "```bash\n"
        "# not a heading\n"
        "```\n"
        "\n"
        "## Hook events\n"
        "\n"
        "PreToolUse runs before a tool call.\n"
    ),
    "https://docs.example.com/en/settings.md": "# Settings\n\nSettings live in settings.json.\n",
}


class FakeFetcher:
    """In-memory FetcherProtocol. Unknown or failing URLs raise NetworkError."""

    def __init__(self, responses: dict[str, str], failing: set[str] | None = None) -> None:
        self.responses = dict(responses)
        self.failing = set(failing or ())
        self.calls: list[str] = []

    async def fetch(
        self,
        url: str,
        *,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        timeout: float | None = None,
    ) -> str:
        self.calls.append(url)
        if url in self.failing or url not in self.responses:
            raise NetworkError(f"HTTP 503 fetching {url}", status_code=503, retries=3)
        return self.responses[url]


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing every path at tmp_path, with no real retry delays."""
    return Settings(
        paths=PathSettings(data_dir=str(tmp_path / "data")),
        resources=ResourceSettings(remote_url=MANIFEST_URL, max_retries=0),
        fetcher=FetcherSettings(max_retries=1, retry_delay_seconds=0.0),
    )


@pytest.fixture()
def paths(settings: Settings) -> DataPaths:
    return DataPaths.from_dir(settings.paths.data_dir)


@pytest.fixture()
def fetcher() -> FakeFetcher:
    """Serves the sample manifest and every sample document."""
    return FakeFetcher({MANIFEST_URL: SAMPLE_LLMS_TXT, **SAMPLE_DOCS})


@pytest.fixture()
def cache(paths: DataPaths) -> ContentCache:
    return ContentCache(paths)


@pytest.fixture()
def ledger(paths: DataPaths) -> ChangelogLedger:
    return ChangelogLedger(paths.changelog_file)


@pytest.fixture()
def resolver(fetcher: FakeFetcher, paths: DataPaths, settings: Settings) -> ResourceResolver:
    return ResourceResolver(fetcher, paths, settings.resources)


@pytest.fixture()
def orchestrator(
    paths: DataPaths,
    fetcher: FakeFetcher,
    cache: ContentCache,
    ledger: ChangelogLedger,
    resolver: ResourceResolver,
    settings: Settings,
) -> UpdateOrchestrator:
    return UpdateOrchestrator(
        paths=paths,
        fetcher=fetcher,
        cache=cache,
        ledger=ledger,
        resolver=resolver,
        settings=settings,
    )


@pytest.fixture()
def manifest_url() -> str:
    return MANIFEST_URL


@pytest.fixture()
def sample_llms_txt() -> str:
    return SAMPLE_LLMS_TXT


@pytest.fixture()
def sample_docs() -> dict[str, str]:
    """Map of document URL to content for every document in the sample manifest."""
    return dict(SAMPLE_DOCS)


@pytest.fixture()
def make_fetcher() -> Callable[..., FakeFetcher]:
    """Factory for FakeFetcher instances with custom responses."""
    return FakeFetcher
