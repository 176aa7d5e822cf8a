"""
dreamer_watch.tools

Research tools exposed to the model during the research step.

Responsibilities:
- Declare tool parameter models (these become the tool JSON schemas).
- Adapt search client calls into tool handlers that never raise: upstream
  failures degrade to empty, well-formed results.
"""

# Package marker.
