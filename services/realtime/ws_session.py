"""Dispatch chat websocket events to the appropriate handlers."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Union

from models.chat_models import ChatSession
from models.envelopes import ErrorEnvelope, MessageType
from services.realtime.broadcaster import BroadcastEngine
from services.realtime.connection_registry import ConnectionRegistry
from services.realtime.presence import PresenceNotifier
from services.realtime.ws_chat import ChatMessageHandler
from services.realtime.ws_typing import TypingMessageHandler

LOGGER = logging.getLogger(__name__)


class ChatSessionHandler:
	"""Route websocket frames for every connected chat session.

	Each session starts unbound. The first valid chat or typing message binds
	its username, which announces the join and refreshes the online count.
	Later messages never re-announce.
	"""

	def __init__(self, registry: ConnectionRegistry, broadcaster: BroadcastEngine) -> None:
		self.registry = registry
		self.broadcaster = broadcaster
		self.presence = PresenceNotifier(registry, broadcaster)
		self.chat_handler = ChatMessageHandler(broadcaster)
		self.typing_handler = TypingMessageHandler(broadcaster)

	async def open(self, session: ChatSession) -> None:
		"""Register a new session and greet it."""
		await self.registry.register(session)
		await self.presence.welcome(session)

	async def handle(self, session: ChatSession, raw: Union[str, bytes]) -> None:
		"""Process a single inbound frame."""
		payload = self._parse(raw)
		if payload is None:
			await self._send_error(session)
			return

		message_type = payload.get("type")
		if message_type == MessageType.CHAT_MESSAGE.value:
			message = self.chat_handler.validate(payload)
			if message is None:
				return
			await self._bind_identity(session, message.username)
			await self.chat_handler.relay(session, payload, message)
		elif message_type == MessageType.TYPING.value:
			message = self.typing_handler.validate(payload)
			if message is None:
				return
			await self._bind_identity(session, message.username)
			await self.typing_handler.relay(session, payload, message)
		else:
			LOGGER.info("Unknown message type from session %s: %r", session.session_id, message_type)

	async def close(self, session: ChatSession) -> None:
		"""Drop a closed or failed session and announce the departure if it had joined."""
		identity = await self.registry.unregister(session)
		if identity is not None:
			await self.presence.announce_leave(identity)

	async def _bind_identity(self, session: ChatSession, username: str) -> None:
		if await self.registry.bind_if_unbound(session, username):
			await self.presence.announce_join(username)

	def _parse(self, raw: Union[str, bytes]) -> Optional[Dict[str, Any]]:
		"""Decode a frame into a JSON object, or None when it cannot be routed.

		Any JSON value other than an object (strings, numbers, arrays, null) is
		rejected here too, so the sender gets an error reply instead of silence.
		"""
		if isinstance(raw, bytes):
			try:
				raw = raw.decode("utf-8")
			except UnicodeDecodeError:
				LOGGER.warning("Binary frame is not valid UTF-8")
				return None
		try:
			payload = json.loads(raw)
		except ValueError as exc:
			LOGGER.warning("Error processing message: %s", exc)
			return None
		if not isinstance(payload, dict):
			LOGGER.warning("Error processing message: expected a JSON object, got %s", type(payload).__name__)
			return None
		LOGGER.debug("Parsed message: %s", payload)
		return payload

	async def _send_error(self, session: ChatSession) -> None:
		if not await self.broadcaster.send(session, ErrorEnvelope()):
			LOGGER.warning("Could not deliver error message to session %s", session.session_id)
