"""
dreamer_watch.api.app

FastAPI app factory for the Dreamer Watch service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Initialize and dispose shared infrastructure (store, HTTP client, model
  clients, the optional search-cache sweep) in the lifespan.
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator

import httpx
from fastapi import FastAPI

from dreamer_watch import __version__
from dreamer_watch.api.routers.chat import router as chat_router
from dreamer_watch.api.routers.chats import router as chats_router
from dreamer_watch.api.routers.health import router as health_router
from dreamer_watch.api.routers.models import router as models_router
from dreamer_watch.api.routers.search import router as search_router
from dreamer_watch.llm.registry import ModelProvider, ModelRegistry
from dreamer_watch.observability.logging import configure_logging, get_logger
from dreamer_watch.observability.middleware import RequestContextMiddleware
from dreamer_watch.settings import Settings
from dreamer_watch.store.base import KeyValueStore
from dreamer_watch.store.factory import create_store
from dreamer_watch.store.repositories.search_cache import SearchCacheRepo

log = get_logger(__name__)


async def _sweep_forever(cache: SearchCacheRepo, *, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        await cache.sweep()


def create_app(
    *,
    settings: Settings,
    store: KeyValueStore | None = None,
    models: ModelProvider | None = None,
    http: httpx.AsyncClient | None = None,
) -> FastAPI:
    """
    Injected `store`/`models`/`http` are used as-is and left open on shutdown;
    anything built here is owned (and closed) by the lifespan.
    """

    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        json_logs=settings.env != "dev",
    )

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env, store_backend=settings.store_backend)

        kv = store if store is not None else create_store(settings)
        # Connection failures abort startup; the store has already logged a hint.
        await kv.open()
        client = http if http is not None else httpx.AsyncClient(
            timeout=settings.http_timeout_seconds
        )
        registry = models if models is not None else ModelRegistry(settings=settings)

        app.state.settings = settings
        app.state.store = kv
        app.state.http = client
        app.state.models = registry
        app.state.tasks = set()

        sweeper: asyncio.Task | None = None
        if settings.search_cache_sweep_interval_seconds > 0:
            cache = SearchCacheRepo(kv, ttl_seconds=settings.search_cache_ttl_seconds)
            sweeper = asyncio.create_task(
                _sweep_forever(cache, interval=settings.search_cache_sweep_interval_seconds)
            )

        try:
            yield
        finally:
            pending = [t for t in (sweeper, *app.state.tasks) if t is not None]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

            if models is None:
                await registry.close()
            if http is None:
                await client.aclose()
            if store is None:
                await kv.close()
            log.info("shutdown")

    app = FastAPI(
        title="Dreamer Watch",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(chat_router)
    app.include_router(chats_router)
    app.include_router(search_router)
    app.include_router(models_router)

    return app


# --- Module Notes -----------------------------------------------------------
# Tests inject `store`, `models` and `http` and drive the lifespan with
# `app.router.lifespan_context(app)`.
