"""
dreamer_watch.llm

Model provider package.

Responsibilities:
- One async `ChatModel` interface for structured objects and tool-using text.
- Provider implementations (Anthropic, OpenAI and OpenAI-compatible endpoints).
- The model catalogue and registry used by the API layer.
"""

# Package marker.
