"""
dreamer_watch.search_clients

Third-party search client package.

Responsibilities:
- Provide client interfaces for the web search, content extraction and video
  search APIs used by the research tools.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Tools depend on this boundary (not on raw HTTP) so providers can be swapped.
