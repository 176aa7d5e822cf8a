from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence

from langgraph.graph import END, StateGraph

from dreamer_watch.llm.base import ChatModel, ToolSpec
from dreamer_watch.orchestrator.events import WorkflowEvent
from dreamer_watch.orchestrator.nodes import (
    NodeDeps,
    classify_node,
    entry_node,
    inquire_node,
    research_node,
    route_after_classify,
    suggest_node,
)
from dreamer_watch.orchestrator.state import ChatState
from dreamer_watch.orchestrator.streaming import Channel


def build_graph(
    *,
    model: ChatModel,
    tools: Sequence[ToolSpec],
    channel: Channel[WorkflowEvent],
    max_steps: int = 5,
):
    """
    Returns a compiled LangGraph runnable.

    entry -> classify -> (inquire -> END) | (research -> suggest -> END)
    """

    deps = NodeDeps(model=model, tools=tools, channel=channel, max_steps=max_steps)
    graph = StateGraph(ChatState)

    graph.add_node("entry", entry_node)
    graph.add_node("classify", _bind_deps(classify_node, deps))
    graph.add_node("inquire", _bind_deps(inquire_node, deps))
    graph.add_node("research", _bind_deps(research_node, deps))
    graph.add_node("suggest", _bind_deps(suggest_node, deps))

    graph.set_entry_point("entry")

    graph.add_edge("entry", "classify")
    graph.add_conditional_edges(
        "classify",
        route_after_classify,
        {"inquire": "inquire", "research": "research"},
    )
    graph.add_edge("inquire", END)
    graph.add_edge("research", "suggest")
    graph.add_edge("suggest", END)

    return graph.compile()


def _bind_deps(
    fn: Callable[..., Awaitable[ChatState]],
    deps: NodeDeps,
) -> Callable[[ChatState], Awaitable[ChatState]]:
    async def _wrapped(state: ChatState) -> ChatState:
        return await fn(state, deps=deps)

    return _wrapped
