"""dreamer_watch.observability: structlog configuration and request log context."""
