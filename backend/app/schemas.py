from typing import Any

from pydantic import BaseModel, Field, field_validator

CHAT_BACKEND_ERROR = "Chat backend error"


class ChatRequest(BaseModel):
    # Forwarded verbatim; message shape is the completion API's concern.
    messages: list[Any] = Field(default_factory=list)
    # Interpreted only by ChatMode.from_request.
    mode: Any = None

    @field_validator("messages", mode="before")
    @classmethod
    def _null_messages_are_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class ChatReply(BaseModel):
    reply: str


class ChatError(BaseModel):
    error: str = CHAT_BACKEND_ERROR


class HealthStatus(BaseModel):
    ok: bool = True
