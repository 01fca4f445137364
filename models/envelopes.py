"""Wire envelopes exchanged over the chat websocket."""

from __future__ import annotations

import time
from enum import Enum
from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StringConstraints

NonEmptyText = Annotated[str, StringConstraints(strict=True, min_length=1)]


def now_ms() -> int:
	"""Return the current time as epoch milliseconds."""
	return int(time.time() * 1000)


class MessageType(str, Enum):
	CHAT_MESSAGE = "chat-message"
	TYPING = "typing"
	SYSTEM = "system"
	ONLINE_COUNT = "online-count"
	ERROR = "error"


class ChatMessagePayload(BaseModel):
	"""Inbound chat message; relayed verbatim once validated."""

	model_config = ConfigDict(extra="allow")

	type: Literal["chat-message"]
	username: NonEmptyText
	text: NonEmptyText
	timestamp: Optional[Any] = None


class TypingPayload(BaseModel):
	"""Inbound typing indicator."""

	model_config = ConfigDict(extra="allow")

	type: Literal["typing"]
	username: NonEmptyText
	is_typing: StrictBool = Field(alias="isTyping")
	timestamp: Optional[Any] = None


class SystemEnvelope(BaseModel):
	type: Literal["system"] = "system"
	text: str
	timestamp: int = Field(default_factory=now_ms)


class OnlineCountEnvelope(BaseModel):
	type: Literal["online-count"] = "online-count"
	count: int
	timestamp: int = Field(default_factory=now_ms)


class ErrorEnvelope(BaseModel):
	type: Literal["error"] = "error"
	text: str = "Failed to process message"
	timestamp: int = Field(default_factory=now_ms)
