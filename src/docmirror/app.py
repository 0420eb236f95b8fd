"""Application wiring.

Responsibilities:
- Configure structlog once per process
- Build AppState inside the ``open_app`` async context manager
- Own the httpx client lifecycle
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import structlog

from docmirror import __version__
from docmirror.cache import ContentCache
from docmirror.changelog import ChangelogLedger
from docmirror.config import Settings
from docmirror.errors import DocMirrorError
from docmirror.fetcher import Fetcher, build_http_client
from docmirror.paths import DataPaths
from docmirror.protocols import identity_transform
from docmirror.resources import ResourceResolver
from docmirror.state import AppState
from docmirror.updater import UpdateOrchestrator

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable

    import httpx

    from docmirror.protocols import Transform

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # stdout belongs to the rendering layer
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# State construction
# ---------------------------------------------------------------------------


def build_state(
    settings: Settings,
    http_client: httpx.AsyncClient,
    transform: Transform = identity_transform,
) -> AppState:
    """Assemble every component around an already-open HTTP client."""
    paths = DataPaths.from_dir(settings.paths.data_dir)
    fetcher = Fetcher(http_client, settings.fetcher)
    resolver = ResourceResolver(fetcher, paths, settings.resources)
    cache = ContentCache(paths, transform)
    ledger = ChangelogLedger(paths.changelog_file)
    orchestrator = UpdateOrchestrator(
        paths=paths,
        fetcher=fetcher,
        cache=cache,
        ledger=ledger,
        resolver=resolver,
        settings=settings,
        transform=transform,
    )
    return AppState(
        settings=settings,
        paths=paths,
        http_client=http_client,
        fetcher=fetcher,
        resolver=resolver,
        cache=cache,
        ledger=ledger,
        orchestrator=orchestrator,
        transform=transform,
    )


@asynccontextmanager
async def open_app(
    settings: Settings | None = None,
    *,
    transform: Transform = identity_transform,
    configure_logging: bool = True,
) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources for one invocation."""
    settings = settings or Settings()
    if configure_logging:
        setup_logging(settings)

    http_client = build_http_client(settings.fetcher)
    state = build_state(settings, http_client, transform)
    log.info("app_started", version=__version__, data_dir=str(state.paths.root))

    try:
        yield state
    finally:
        await http_client.aclose()
        log.info("app_stopping")


async def call_tool(handler: Callable[..., Awaitable[dict]], *args: Any, **kwargs: Any) -> dict:
    """Run a tool handler, turning expected failures into the error envelope."""
    try:
        return await handler(*args, **kwargs)
    except DocMirrorError as exc:
        log.warning("tool_error", code=exc.code, message=exc.message)
        return exc.to_dict()
