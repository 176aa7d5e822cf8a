"""Anthropic Messages API implementation of `ChatModel`."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Any

from anthropic import AsyncAnthropic
from pydantic import BaseModel

from dreamer_watch.llm.base import (
    ChatModel,
    ModelMessage,
    StepEnd,
    ToolCall,
    ToolResult,
    ToolSpec,
    schema_description,
    schema_name,
    tool_result_content,
)


def _api_messages(messages: Sequence[ModelMessage]) -> list[dict[str, Any]]:
    # System text travels separately; consecutive same-role turns are merged by the API.
    return [dict(m) for m in messages if m.get("role") != "system"]


def _serialize_content(content: list[Any]) -> list[dict[str, Any]]:
    blocks: list[dict[str, Any]] = []
    for block in content:
        if block.type == "text":
            blocks.append({"type": "text", "text": block.text})
        elif block.type == "tool_use":
            blocks.append(
                {"type": "tool_use", "id": block.id, "name": block.name, "input": block.input}
            )
    return blocks


class AnthropicChatModel(ChatModel):
    provider = "anthropic"

    def __init__(self, *, client: AsyncAnthropic, model: str, max_tokens: int = 4096) -> None:
        super().__init__(model=model, max_tokens=max_tokens)
        self._client = client

    async def _stream_json(
        self, *, system: str, messages: Sequence[ModelMessage], schema: type[BaseModel]
    ) -> AsyncIterator[str]:
        # A forced tool call is the structured-output channel: its input is the object.
        name = schema_name(schema)
        async with self._client.messages.stream(
            model=self.model,
            max_tokens=self.max_tokens,
            system=system,
            messages=_api_messages(messages),
            tools=[
                {
                    "name": name,
                    "description": schema_description(schema),
                    "input_schema": schema.model_json_schema(),
                }
            ],
            tool_choice={"type": "tool", "name": name},
        ) as stream:
            async for event in stream:
                if event.type == "content_block_delta" and event.delta.type == "input_json_delta":
                    yield event.delta.partial_json

    async def _stream_step(
        self, *, system: str, messages: Sequence[ModelMessage], tools: Sequence[ToolSpec]
    ) -> AsyncIterator[str | StepEnd]:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system,
            "messages": _api_messages(messages),
        }
        if tools:
            kwargs["tools"] = [
                {"name": t.name, "description": t.description, "input_schema": t.input_schema()}
                for t in tools
            ]

        async with self._client.messages.stream(**kwargs) as stream:
            async for text in stream.text_stream:
                yield text
            final = await stream.get_final_message()

        yield StepEnd(
            tool_calls=[
                ToolCall(id=b.id, name=b.name, args=dict(b.input or {}))
                for b in final.content
                if b.type == "tool_use"
            ],
            assistant_message={"role": "assistant", "content": _serialize_content(final.content)},
        )

    def _tool_round(self, step: StepEnd, results: Sequence[ToolResult]) -> list[ModelMessage]:
        return [
            step.assistant_message,
            {
                "role": "user",
                "content": [
                    {
                        "type": "tool_result",
                        "tool_use_id": r.tool_call_id,
                        "content": tool_result_content(r),
                        "is_error": "error" in r.result,
                    }
                    for r in results
                ],
            },
        ]
