"""
dreamer_watch.api.__main__

`python -m dreamer_watch.api` / `dreamer-watch` console script.
"""

from __future__ import annotations

import uvicorn

from dreamer_watch.api.app import create_app
from dreamer_watch.settings import get_settings


def main() -> None:
    settings = get_settings()

    uvicorn.run(
        create_app(settings=settings),
        host=settings.api_host,
        port=settings.api_port,
        # Logging and access lines come from structlog (RequestContextMiddleware).
        log_config=None,
        access_log=False,
        # Open SSE streams get this long to finish before workers are killed.
        timeout_graceful_shutdown=30,
    )


if __name__ == "__main__":
    main()
