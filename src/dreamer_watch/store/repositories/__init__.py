"""
dreamer_watch.store.repositories

Repository package.

Responsibilities:
- Group data-access repositories built on the key-value store interface.
"""

# Package marker; repositories are imported directly from submodules.


# --- Module Notes -----------------------------------------------------------
# Repositories are intentionally thin; workflow logic belongs in services.
