"""
dreamer_watch.store.errors

Store-layer exception hierarchy.
"""

from __future__ import annotations


class StoreError(Exception):
    """Base class for key-value store failures."""


class StoreConfigError(StoreError):
    """Backend configuration is missing or invalid (fatal at startup)."""


class StoreConnectionError(StoreError):
    """The backend could not be reached."""


class StoreCommandError(StoreError):
    """The backend rejected a command."""
