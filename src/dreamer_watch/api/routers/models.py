from __future__ import annotations

from fastapi import APIRouter, Depends

from dreamer_watch.api.deps import models_dep, settings_dep
from dreamer_watch.llm.registry import ModelProvider
from dreamer_watch.settings import Settings

router = APIRouter(prefix="/api", tags=["models"])


@router.get("/models")
async def list_models(
    models: ModelProvider = Depends(models_dep),
    settings: Settings = Depends(settings_dep),
) -> dict[str, object]:
    # Only models whose provider has credentials configured are selectable.
    return {
        "default": settings.default_model,
        "models": [m.to_public() for m in models.enabled_models()],
    }
