"""
dreamer_watch.llm.openai_model

OpenAI Chat Completions implementation of `ChatModel`.

Also serves every provider that exposes an OpenAI-compatible endpoint (Google,
Groq, generic OpenAI-compatible hosts); only the client's base URL differs.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Sequence
from typing import Any

from openai import AsyncOpenAI
from pydantic import BaseModel

from dreamer_watch.llm.base import (
    ChatModel,
    ModelMessage,
    StepEnd,
    ToolCall,
    ToolResult,
    ToolSpec,
    schema_name,
    tool_result_content,
)
from dreamer_watch.observability.logging import get_logger

log = get_logger(__name__)


def _api_messages(system: str, messages: Sequence[ModelMessage]) -> list[dict[str, Any]]:
    return [{"role": "system", "content": system}, *(dict(m) for m in messages)]


def _parse_arguments(raw: str, *, tool: str) -> dict[str, Any]:
    try:
        args = json.loads(raw or "{}")
    except ValueError:
        log.warning("tool_arguments_unparseable", tool=tool)
        return {}
    return args if isinstance(args, dict) else {}


class OpenAIChatModel(ChatModel):
    def __init__(
        self,
        *,
        client: AsyncOpenAI,
        model: str,
        provider: str = "openai",
        max_tokens: int = 4096,
    ) -> None:
        super().__init__(model=model, max_tokens=max_tokens)
        self._client = client
        self.provider = provider

    async def _stream_json(
        self, *, system: str, messages: Sequence[ModelMessage], schema: type[BaseModel]
    ) -> AsyncIterator[str]:
        stream = await self._client.chat.completions.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=_api_messages(system, messages),
            response_format={
                "type": "json_schema",
                "json_schema": {"name": schema_name(schema), "schema": schema.model_json_schema()},
            },
            stream=True,
        )
        async for chunk in stream:
            if chunk.choices and chunk.choices[0].delta.content:
                yield chunk.choices[0].delta.content

    async def _stream_step(
        self, *, system: str, messages: Sequence[ModelMessage], tools: Sequence[ToolSpec]
    ) -> AsyncIterator[str | StepEnd]:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": _api_messages(system, messages),
            "stream": True,
        }
        if tools:
            kwargs["tools"] = [
                {
                    "type": "function",
                    "function": {
                        "name": t.name,
                        "description": t.description,
                        "parameters": t.input_schema(),
                    },
                }
                for t in tools
            ]

        text = ""
        # Tool calls arrive as fragments keyed by index; names/arguments are concatenated.
        pending: dict[int, dict[str, str]] = {}
        stream = await self._client.chat.completions.create(**kwargs)
        async for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta
            if delta.content:
                text += delta.content
                yield delta.content
            for tc in delta.tool_calls or []:
                slot = pending.setdefault(tc.index, {"id": "", "name": "", "arguments": ""})
                if tc.id:
                    slot["id"] = tc.id
                if tc.function is not None:
                    slot["name"] += tc.function.name or ""
                    slot["arguments"] += tc.function.arguments or ""

        calls = [
            ToolCall(
                id=slot["id"],
                name=slot["name"],
                args=_parse_arguments(slot["arguments"], tool=slot["name"]),
            )
            for _, slot in sorted(pending.items())
        ]
        assistant: dict[str, Any] = {"role": "assistant", "content": text or None}
        if calls:
            assistant["tool_calls"] = [
                {
                    "id": slot["id"],
                    "type": "function",
                    "function": {"name": slot["name"], "arguments": slot["arguments"] or "{}"},
                }
                for _, slot in sorted(pending.items())
            ]
        yield StepEnd(tool_calls=calls, assistant_message=assistant)

    def _tool_round(self, step: StepEnd, results: Sequence[ToolResult]) -> list[ModelMessage]:
        return [
            step.assistant_message,
            *(
                {"role": "tool", "tool_call_id": r.tool_call_id, "content": tool_result_content(r)}
                for r in results
            ),
        ]
