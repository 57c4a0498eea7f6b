from __future__ import annotations

import time
from collections.abc import Sequence
from typing import Any

from .knowledge_base import ChatContext
from .logging_config import get_logger
from .metrics import chat_completion_duration_seconds
from .openai_async import CHAT_COMPLETIONS_PATH, post_json
from .policies import ChatMode, compose_system_prompt
from .schemas import ChatRequest

logger = get_logger(__name__)

CHAT_MODEL = "gpt-4o"
CHAT_TEMPERATURE = 0.2
CHAT_MAX_TOKENS = 400


class MalformedCompletion(ValueError):
    """Raised when the completion payload has no first-choice text."""


def build_completion_request(
    messages: Sequence[Any], system_prompt: str
) -> dict[str, Any]:
    return {
        "model": CHAT_MODEL,
        "temperature": CHAT_TEMPERATURE,
        "max_tokens": CHAT_MAX_TOKENS,
        "messages": [{"role": "system", "content": system_prompt}, *messages],
    }


def extract_reply(response: Any) -> str:
    try:
        content = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise MalformedCompletion("Completion response has no first choice message") from exc
    if not isinstance(content, str):
        raise MalformedCompletion("Completion message content is not text")
    return content


class ChatService:
    def __init__(self, context: ChatContext) -> None:
        self.context = context

    def system_prompt(self, mode: ChatMode | str | None) -> str:
        return compose_system_prompt(mode, self.context.reference_text)

    async def reply(self, request: ChatRequest) -> str:
        mode = ChatMode.from_request(request.mode)
        payload = build_completion_request(request.messages, self.system_prompt(mode))

        started = time.perf_counter()
        try:
            response = await post_json(CHAT_COMPLETIONS_PATH, payload)
        finally:
            chat_completion_duration_seconds.observe(time.perf_counter() - started)

        text = extract_reply(response)
        logger.info(
            "chat_completed",
            mode=mode.value,
            message_count=len(request.messages),
            reply_chars=len(text),
        )
        return text


__all__ = [
    "CHAT_MAX_TOKENS",
    "CHAT_MODEL",
    "CHAT_TEMPERATURE",
    "ChatService",
    "MalformedCompletion",
    "build_completion_request",
    "extract_reply",
]
