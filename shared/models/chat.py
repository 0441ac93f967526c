"""Pydantic models for chat sessions, persisted messages and completion requests."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatMessage(BaseModel):
    """A message in the local conversation transcript."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: ChatRole
    content: str
    timestamp: datetime
    session_id: str | None = None


class ChatMessageRecord(BaseModel):
    """A message as persisted by the backend (GET/POST /chat-messages)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    role: ChatRole
    content: str
    session_id: str | None = None
    timestamp: datetime | None = None


class ConversationMessage(BaseModel):
    role: ChatRole
    content: str


class ChatCompletionRequest(BaseModel):
    """Body of POST /chat: the new message plus the conversation so far."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    conversation_history: list[ConversationMessage] = []


class ChatCompletionResponse(BaseModel):
    """Answer of POST /chat. Exactly one of message / error is set."""

    message: str | None = None
    error: str | None = None
