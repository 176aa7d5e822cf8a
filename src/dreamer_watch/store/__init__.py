"""
dreamer_watch.store

Key-value persistence package.

Responsibilities:
- Provide one async key-value interface with hosted (REST), self-hosted (socket)
  and in-memory implementations.
- Provide chat/message models and repositories built on that interface.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The backend is selected once at startup (`store.factory.create_store`); nothing
# below the factory branches on the concrete client type.
