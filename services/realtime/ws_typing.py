"""Handle typing indicators coming over the realtime websocket."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from models.chat_models import ChatSession
from models.envelopes import TypingPayload
from services.realtime.broadcaster import BroadcastEngine

LOGGER = logging.getLogger(__name__)


class TypingMessageHandler:
	"""Forward typing indicators to everyone except the typist."""

	def __init__(self, broadcaster: BroadcastEngine) -> None:
		self.broadcaster = broadcaster

	def validate(self, payload: Dict[str, Any]) -> Optional[TypingPayload]:
		try:
			return TypingPayload.model_validate(payload)
		except ValidationError:
			LOGGER.warning("Invalid typing message - missing username or isTyping")
			return None

	async def relay(self, session: ChatSession, payload: Dict[str, Any], message: TypingPayload) -> int:
		LOGGER.debug("%s is typing: %s", message.username, message.is_typing)
		return await self.broadcaster.broadcast_except(payload, session)
