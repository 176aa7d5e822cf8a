from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from dreamer_watch.orchestrator.history import model_history
from dreamer_watch.services.submissions import ChatSubmission, chat_title
from dreamer_watch.store.models import ChatMessage, MessageRole, MessageType


def _msg(role: MessageRole, content: str, type_: MessageType | None = None) -> ChatMessage:
    return ChatMessage(role=role, content=content, type=type_)


def test_history_drops_bookkeeping_messages() -> None:
    messages = [
        _msg(MessageRole.user, '{"input": "q"}', MessageType.input),
        _msg(MessageRole.tool, "{}", MessageType.tool),
        _msg(MessageRole.assistant, "answer", MessageType.answer),
        _msg(MessageRole.assistant, '{"items": []}', MessageType.related),
        _msg(MessageRole.assistant, "followup", MessageType.followup),
        _msg(MessageRole.assistant, "end", MessageType.end),
        _msg(MessageRole.user, '{"action": "skip"}'),
    ]

    assert model_history(messages) == [
        {"role": "user", "content": '{"input": "q"}'},
        {"role": "assistant", "content": "answer"},
        {"role": "user", "content": '{"action": "skip"}'},
    ]


def test_history_keeps_last_n() -> None:
    messages = [_msg(MessageRole.user, str(i), MessageType.input) for i in range(15)]
    window = model_history(messages, limit=10)
    assert [m["content"] for m in window] == [str(i) for i in range(5, 15)]


def test_submission_kinds_encode_to_messages() -> None:
    m = ChatSubmission(input="Best dive watch?").to_message()
    assert (m.role, m.type, json.loads(m.content)) == (
        MessageRole.user,
        MessageType.input,
        {"input": "Best dive watch?"},
    )

    m = ChatSubmission.model_validate({"relatedQuery": "Seamaster history"}).to_message()
    assert m.type == MessageType.input_related
    assert json.loads(m.content) == {"related_query": "Seamaster history"}

    m = ChatSubmission.model_validate({"inquiryResponse": {"budget": "luxury"}}).to_message()
    assert (m.role, m.type) == (MessageRole.user, MessageType.inquiry)

    m = ChatSubmission(skip=True).to_message()
    assert m.type is None
    assert json.loads(m.content) == {"action": "skip"}


def test_submission_requires_exactly_one_kind() -> None:
    with pytest.raises(ValidationError):
        ChatSubmission()
    with pytest.raises(ValidationError):
        ChatSubmission(input="a", skip=True)
    with pytest.raises(ValidationError):
        ChatSubmission(input="   ")


def test_chat_title_from_first_input() -> None:
    first = ChatSubmission(input="x" * 150).to_message()
    assert chat_title([first]) == "x" * 100
    assert chat_title([ChatSubmission(skip=True).to_message()]) == "Untitled"
    assert chat_title([]) == "Untitled"
