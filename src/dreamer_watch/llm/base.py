"""
dreamer_watch.llm.base

Provider-neutral async model interface.

Responsibilities:
- Stream structured objects as partial snapshots (`stream_object`) and validate
  the final object (`generate_object`).
- Run the multi-step tool-calling loop (`stream_text`): stream text deltas,
  execute requested tools, feed results back, stop when the model answers
  without tools or the step budget is spent.
- Leave only wire-format concerns to provider subclasses.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
from pydantic_core import from_json

from dreamer_watch.observability.logging import get_logger

log = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

# Plain `{role, content}` dicts; provider subclasses translate to their wire format.
ModelMessage = dict[str, Any]


class ModelError(Exception):
    pass


class ModelConfigError(ModelError):
    """Unknown model id, or the provider has no credentials configured."""


class ModelOutputError(ModelError):
    """The model produced output that does not match the requested schema."""


ToolHandler = Callable[[Any], Awaitable[dict[str, Any]]]


@dataclass(frozen=True, slots=True)
class ToolSpec:
    name: str
    description: str
    params_model: type[BaseModel]
    handler: ToolHandler

    def input_schema(self) -> dict[str, Any]:
        return self.params_model.model_json_schema()


@dataclass(frozen=True, slots=True)
class ToolCall:
    id: str
    name: str
    args: dict[str, Any]


@dataclass(frozen=True, slots=True)
class ToolResult:
    tool_call_id: str
    tool_name: str
    args: dict[str, Any]
    result: dict[str, Any]


@dataclass(frozen=True, slots=True)
class TextDelta:
    text: str


@dataclass(slots=True)
class StepEnd:
    """Marks the end of one streamed model step."""

    tool_calls: list[ToolCall] = field(default_factory=list)
    # Provider-native assistant turn, replayed in the next step's history.
    assistant_message: dict[str, Any] = field(default_factory=dict)


def schema_name(schema: type[BaseModel]) -> str:
    return schema.__name__.lower()


def schema_description(schema: type[BaseModel]) -> str:
    return (schema.__doc__ or schema.__name__).strip()


def parse_partial(buffer: str) -> dict[str, Any] | None:
    try:
        value = from_json(buffer, allow_partial=True)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


async def _execute_tool(tools: dict[str, ToolSpec], call: ToolCall) -> ToolResult:
    spec = tools.get(call.name)
    if spec is None:
        result: dict[str, Any] = {"error": f"Unknown tool: {call.name}"}
    else:
        try:
            params = spec.params_model.model_validate(call.args)
        except ValidationError as e:
            result = {"error": f"Invalid arguments for {call.name}: {e.errors()}"}
        else:
            try:
                result = await spec.handler(params)
            except Exception as e:
                # Report the failure to the model instead of aborting the answer.
                log.exception("tool_failed", tool=call.name)
                result = {"error": f"{call.name} failed: {e}"}
    return ToolResult(tool_call_id=call.id, tool_name=call.name, args=call.args, result=result)


class ChatModel(ABC):
    provider: str = "abstract"

    def __init__(self, *, model: str, max_tokens: int = 4096) -> None:
        self.model = model
        self.max_tokens = max_tokens

    @property
    def model_id(self) -> str:
        return f"{self.provider}:{self.model}"

    # -- provider hooks -----------------------------------------------------

    @abstractmethod
    def _stream_json(
        self, *, system: str, messages: Sequence[ModelMessage], schema: type[BaseModel]
    ) -> AsyncIterator[str]:
        """Yield raw JSON text chunks of an object conforming to `schema`."""

    @abstractmethod
    def _stream_step(
        self, *, system: str, messages: Sequence[ModelMessage], tools: Sequence[ToolSpec]
    ) -> AsyncIterator[str | StepEnd]:
        """Yield text deltas, then exactly one `StepEnd`."""

    @abstractmethod
    def _tool_round(self, step: StepEnd, results: Sequence[ToolResult]) -> list[ModelMessage]:
        """History entries recording one assistant tool turn and its results."""

    # -- public API ---------------------------------------------------------

    async def stream_object(
        self, *, system: str, messages: Sequence[ModelMessage], schema: type[BaseModel]
    ) -> AsyncIterator[dict[str, Any]]:
        buffer = ""
        last: dict[str, Any] | None = None
        async for chunk in self._stream_json(system=system, messages=messages, schema=schema):
            buffer += chunk
            snapshot = parse_partial(buffer)
            if snapshot is not None and snapshot != last:
                last = snapshot
                yield snapshot

    async def generate_object(
        self, *, system: str, messages: Sequence[ModelMessage], schema: type[M]
    ) -> M:
        buffer = ""
        async for chunk in self._stream_json(system=system, messages=messages, schema=schema):
            buffer += chunk
        try:
            return schema.model_validate_json(buffer)
        except ValidationError as e:
            raise ModelOutputError(f"{schema.__name__} output did not validate: {e}") from e

    async def stream_text(
        self,
        *,
        system: str,
        messages: Sequence[ModelMessage],
        tools: Sequence[ToolSpec] = (),
        max_steps: int = 5,
    ) -> AsyncIterator[TextDelta | ToolResult]:
        by_name = {t.name: t for t in tools}
        history: list[ModelMessage] = list(messages)

        for step in range(max_steps):
            end: StepEnd | None = None
            async for item in self._stream_step(system=system, messages=history, tools=tools):
                if isinstance(item, StepEnd):
                    end = item
                elif item:
                    yield TextDelta(item)

            if end is None or not end.tool_calls:
                return

            log.info(
                "tool_round",
                step=step + 1,
                model=self.model_id,
                tools=[c.name for c in end.tool_calls],
            )
            results: list[ToolResult] = []
            for call in end.tool_calls:
                result = await _execute_tool(by_name, call)
                results.append(result)
                yield result
            history.extend(self._tool_round(end, results))

        log.warning("max_steps_reached", model=self.model_id, max_steps=max_steps)


def tool_result_content(result: ToolResult) -> str:
    return json.dumps(result.result)


# --- Module Notes -----------------------------------------------------------
# Structured outputs are streamed as JSON text in every provider so the same
# partial parser (`pydantic_core.from_json(..., allow_partial=True)`) serves all.
