import asyncio
import copy

import pytest
from backend.app.chat_service import (
    CHAT_MAX_TOKENS,
    CHAT_MODEL,
    CHAT_TEMPERATURE,
    ChatService,
    MalformedCompletion,
    build_completion_request,
    extract_reply,
)
from backend.app.knowledge_base import ChatContext
from backend.app.openai_async import CHAT_COMPLETIONS_PATH, OpenAIUnavailable
from backend.app.policies import STRICT_POLICY_V1, VERSATILE_POLICY_V2
from backend.app.schemas import ChatRequest

CONVERSATION = [
    {"role": "user", "content": "Do you have ramen?"},
    {"role": "assistant", "content": "Yes, tonkotsu ramen."},
    {"role": "system", "content": "caller supplied note"},
    {"role": "user", "content": "What are your hours?"},
]


def test_build_completion_request_prepends_single_system_message():
    original = copy.deepcopy(CONVERSATION)
    payload = build_completion_request(CONVERSATION, "SYSTEM")

    assert payload["model"] == CHAT_MODEL == "gpt-4o"
    assert payload["temperature"] == CHAT_TEMPERATURE == 0.2
    assert payload["max_tokens"] == CHAT_MAX_TOKENS == 400
    assert payload["messages"][0] == {"role": "system", "content": "SYSTEM"}
    assert payload["messages"][1:] == CONVERSATION
    assert CONVERSATION == original


def test_build_completion_request_with_empty_conversation():
    payload = build_completion_request([], "SYSTEM")
    assert payload["messages"] == [{"role": "system", "content": "SYSTEM"}]


def test_extract_reply_returns_first_choice():
    response = {
        "choices": [
            {"message": {"content": "first"}},
            {"message": {"content": "second"}},
        ]
    }
    assert extract_reply(response) == "first"


@pytest.mark.parametrize(
    "response",
    [
        {},
        {"choices": []},
        {"choices": [{}]},
        {"choices": [{"message": {"content": None}}]},
        None,
        "not a dict",
    ],
)
def test_extract_reply_rejects_malformed_payloads(response):
    with pytest.raises(MalformedCompletion):
        extract_reply(response)


def test_reply_uses_versatile_by_default(sakura_kb, fake_completions):
    service = ChatService(ChatContext.from_knowledge_base(sakura_kb))
    reply = asyncio.run(service.reply(ChatRequest(messages=CONVERSATION)))

    assert reply == fake_completions.reply
    path, payload = fake_completions.calls[0]
    assert path == CHAT_COMPLETIONS_PATH
    system = payload["messages"][0]["content"]
    assert system.startswith(VERSATILE_POLICY_V2.text)
    assert system.endswith(
        "REFERENCE DATA:\nRestaurant: Sakura\nContact email: a@b.com\nMenu highlights: Sushi, Ramen"
    )
    assert payload["messages"][1:] == CONVERSATION


def test_reply_uses_strict_when_requested(sakura_kb, fake_completions):
    service = ChatService(ChatContext.from_knowledge_base(sakura_kb))
    asyncio.run(service.reply(ChatRequest(messages=CONVERSATION, mode="strict")))

    system = fake_completions.last_payload["messages"][0]["content"]
    assert system.startswith(STRICT_POLICY_V1.text)


def test_reply_propagates_gateway_errors(sakura_kb, fake_completions):
    fake_completions.error = OpenAIUnavailable("OpenAI error 429: quota")
    service = ChatService(ChatContext.from_knowledge_base(sakura_kb))
    with pytest.raises(OpenAIUnavailable):
        asyncio.run(service.reply(ChatRequest()))
