"""
dreamer_watch.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide the liveness check (`/healthz`).
- Provide the readiness check (`/readyz`) with store connectivity validation.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from dreamer_watch.api.deps import store_dep
from dreamer_watch.observability.logging import get_logger
from dreamer_watch.store.base import KeyValueStore
from dreamer_watch.store.errors import StoreError

router = APIRouter()
log = get_logger(__name__)


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    # Liveness: process is up and serving HTTP.
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(store: KeyValueStore = Depends(store_dep)) -> dict[str, str]:
    # Readiness: verify the key-value store answers.
    try:
        ok = await store.ping()
    except StoreError as e:
        log.warning("readiness_failed", backend=store.backend_name, error=str(e))
        ok = False
    if not ok:
        raise HTTPException(status_code=HTTP_503_SERVICE_UNAVAILABLE, detail="Store unavailable")
    return {"status": "ready", "store": store.backend_name}
