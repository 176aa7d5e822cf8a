from __future__ import annotations


class SearchClientError(Exception):
    """Base class for search provider failures."""


class SearchConfigError(SearchClientError):
    """A provider credential is missing."""


class SearchUpstreamError(SearchClientError):
    """The provider answered with a non-2xx status or an unreadable body."""
