"""adeSync FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.

Also exposes :func:`build_components` so the CLI can run the same object
graph without starting a web server.
"""

from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.settings import Settings
from src.pipeline.orchestrator import DEFAULT_HTML_SNIPPET_CHARS, SyncOrchestrator
from src.pipeline.progress_tracker import ProgressTracker
from src.pipeline.run_ledger import RunLedger
from src.providers.lineup import EventPageProvider
from src.providers.listing import AdeListingProvider
from src.providers.progress import MemoryProgressStore
from src.providers.store import SQLiteSyncStore
from src.services.batch_service import BatchService
from src.services.lineup_parser import LineupParser
from src.services.link_resolver import LinkResolver
from src.services.name_matcher import NameMatcher
from src.services.upsert_service import UpsertService
from src.utils.errors import ConfigurationError
from src.utils.logging import configure_logging, get_logger

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=config["logging"]["level"],
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Component construction
# ---------------------------------------------------------------------------


def _validate_config(types: list[str], matching: dict[str, Any]) -> None:
    """Reject a resolved configuration the pipeline cannot run with.

    Raises
    ------
    ConfigurationError
        If no listing types are configured or a threshold lies outside [0, 1].
    """
    if not types:
        raise ConfigurationError("LISTING_TYPES must name at least one program type")
    for name in ("link_threshold", "high_confidence_threshold"):
        value = matching[name]
        if not 0.0 <= value <= 1.0:
            raise ConfigurationError(f"{name.upper()} must be between 0 and 1, got {value}")


def build_components(
    app_settings: Settings,
    http_client: httpx.AsyncClient | None = None,
    app_config: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Construct every provider and service instance.

    Values come from the merged ``app_config`` sections (see
    :func:`load_config`); keys missing there fall back to *app_settings*.

    Returns a flat dict of named components; the web app stores them on
    ``app.state``, the CLI uses them directly.  The caller owns (and must
    close) ``components["http_client"]``.
    """
    app_config = app_config if app_config is not None else load_config(settings=app_settings)
    listing_cfg = app_config.get("listing", {})
    lineup_cfg = app_config.get("lineup", {})
    matching_cfg = {
        "link_threshold": app_settings.link_threshold,
        "high_confidence_threshold": app_settings.high_confidence_threshold,
        **app_config.get("matching", {}),
    }
    progress_cfg = app_config.get("progress", {})
    storage_cfg = app_config.get("storage", {})

    types = listing_cfg.get("types", app_settings.get_listing_types())
    _validate_config(types, matching_cfg)

    request_timeout = lineup_cfg.get("request_timeout", app_settings.request_timeout)

    # -- Shared resources --
    http_client = http_client or httpx.AsyncClient(timeout=request_timeout, follow_redirects=True)

    # -- Providers --
    store = SQLiteSyncStore(db_path=storage_cfg.get("db_path", app_settings.db_path))
    listing = AdeListingProvider(
        http_client=http_client,
        base_url=listing_cfg.get("api_base_url", app_settings.ade_api_base_url),
        types=types,
        page_delay=listing_cfg.get("page_delay", app_settings.listing_page_delay),
        timeout=request_timeout,
    )
    event_pages = EventPageProvider(
        http_client=http_client,
        parser=LineupParser(
            site_base_url=listing_cfg.get("site_base_url", app_settings.ade_site_base_url)
        ),
        timeout=request_timeout,
    )
    progress_store = MemoryProgressStore(max_size=progress_cfg.get("max_sessions", 1000))

    # -- Services --
    ledger = RunLedger(store)
    matcher = NameMatcher(threshold=matching_cfg["link_threshold"])
    resolver = LinkResolver(
        store, high_confidence_threshold=matching_cfg["high_confidence_threshold"]
    )
    orchestrator = SyncOrchestrator(
        listing_provider=listing,
        event_page_provider=event_pages,
        store=store,
        upsert_service=UpsertService(store),
        link_resolver=resolver,
        name_matcher=matcher,
        ledger=ledger,
        event_page_delay=lineup_cfg.get("event_page_delay", app_settings.event_page_delay),
        lineup_batch_limit=lineup_cfg.get("batch_limit", app_settings.lineup_batch_limit),
        html_snippet_chars=lineup_cfg.get("html_snippet_chars", DEFAULT_HTML_SNIPPET_CHARS),
        default_from_date=listing_cfg.get("from_date", app_settings.listing_from_date),
        default_to_date=listing_cfg.get("to_date", app_settings.listing_to_date),
    )
    tracker = ProgressTracker(
        progress_store,
        retention_seconds=progress_cfg.get("retention_seconds", app_settings.progress_retention_seconds),
    )
    batch_service = BatchService(store, orchestrator, ledger, tracker)

    provider_registry = {
        "listing": type(listing).__name__,
        "event_pages": type(event_pages).__name__,
        "store_backend": store.get_provider_name(),
    }

    return {
        "settings": app_settings,
        "http_client": http_client,
        "store": store,
        "ledger": ledger,
        "orchestrator": orchestrator,
        "progress_tracker": tracker,
        "batch_service": batch_service,
        "provider_registry": provider_registry,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


async def _sweep_progress(tracker: ProgressTracker, interval: float) -> None:
    """Evict expired progress snapshots every *interval* seconds.

    A failed sweep is logged and retried on the next tick.
    """
    while True:
        await asyncio.sleep(interval)
        try:
            removed = await tracker.sweep()
        except Exception as exc:
            _logger.warning("progress_sweep_failed", error=str(exc))
            continue
        if removed:
            _logger.debug("progress_swept", removed=removed)


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = build_components(settings, app_config=config)

    for key, value in components.items():
        setattr(application.state, key, value)

    await components["store"].initialize()
    sweeper = asyncio.create_task(
        _sweep_progress(components["progress_tracker"], config["progress"]["sweep_interval"])
    )

    _logger.info(
        "app_startup",
        version=_VERSION,
        environment=settings.app_env,
        db_path=settings.db_path,
    )

    yield

    # -- Shutdown: stop the sweeper, close shared httpx client --
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="adeSync API",
        version=_VERSION,
        description=(
            "Mirror the Amsterdam Dance Event program into a local store, "
            "track every change per sync run, and link artists to the "
            "events they play from lineup pages and billing text."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=config["app"]["host"],
        port=config["app"]["port"],
        reload=(config["app"]["env"] == "development"),
    )
