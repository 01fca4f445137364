"""Handle chat messages coming over the realtime websocket."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from models.chat_models import ChatSession
from models.envelopes import ChatMessagePayload
from services.realtime.broadcaster import BroadcastEngine

LOGGER = logging.getLogger(__name__)


class ChatMessageHandler:
	"""Validate chat messages and echo them to every session, sender included."""

	def __init__(self, broadcaster: BroadcastEngine) -> None:
		self.broadcaster = broadcaster

	def validate(self, payload: Dict[str, Any]) -> Optional[ChatMessagePayload]:
		"""Return the parsed message, or None when username or text is missing."""
		try:
			return ChatMessagePayload.model_validate(payload)
		except ValidationError:
			LOGGER.warning("Invalid chat message - missing username or text")
			return None

	async def relay(self, session: ChatSession, payload: Dict[str, Any], message: ChatMessagePayload) -> int:
		"""Broadcast the original payload unchanged."""
		LOGGER.debug("%s: %s", message.username, message.text)
		return await self.broadcaster.broadcast_all(payload)
