"""Application state container.

AppState is created once per invocation by ``open_app`` and passed to every
tool handler. Nothing here is process-global.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from docmirror.protocols import identity_transform

if TYPE_CHECKING:
    import httpx

    from docmirror.changelog import ChangelogLedger
    from docmirror.config import Settings
    from docmirror.paths import DataPaths
    from docmirror.protocols import ContentCacheProtocol, FetcherProtocol, Transform
    from docmirror.resources import ResourceResolver
    from docmirror.updater import UpdateOrchestrator


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every tool handler."""

    settings: Settings
    paths: DataPaths
    http_client: httpx.AsyncClient
    fetcher: FetcherProtocol
    resolver: ResourceResolver
    cache: ContentCacheProtocol
    ledger: ChangelogLedger
    orchestrator: UpdateOrchestrator
    transform: Transform = identity_transform
