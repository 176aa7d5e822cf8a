"""
dreamer_watch

DreamerAI Watch Pro: a watch-domain research assistant served over HTTP.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
