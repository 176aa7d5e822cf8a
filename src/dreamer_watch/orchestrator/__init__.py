"""
dreamer_watch.orchestrator

The chat-turn workflow as a LangGraph state machine:

    entry -> classify -> inquire
                      -> research -> suggest

Nodes report partial results as `WorkflowEvent`s on a `Channel`; the transcript
accumulates in `ChatState.messages`.
"""
