"""Integration test fixtures.

Provides a fully wired AppState built by ``open_app`` against a tmp data
directory, with every remote URL served by respx. Settings and sample data
come from tests/conftest.py.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest
import respx

from docmirror.app import open_app

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Iterator

    from docmirror.config import Settings
    from docmirror.state import AppState


@pytest.fixture()
def remote(
    manifest_url: str, sample_llms_txt: str, sample_docs: dict[str, str]
) -> Iterator[respx.MockRouter]:
    """Serve the sample manifest and documents over mocked HTTP."""
    with respx.mock(assert_all_called=False) as router:
        router.get(manifest_url).mock(return_value=httpx.Response(200, text=sample_llms_txt))
        for url, content in sample_docs.items():
            router.get(url, name=url).mock(return_value=httpx.Response(200, text=content))
        yield router


@pytest.fixture()
async def app_state(settings: Settings, remote: respx.MockRouter) -> AsyncGenerator[AppState, None]:
    async with open_app(settings, configure_logging=False) as state:
        yield state


@pytest.fixture()
async def synced_state(app_state: AppState) -> AppState:
    """AppState after a successful first-time sync."""
    result = await app_state.orchestrator.download_all()
    assert result.failed == []
    return app_state
