"""Join, leave and online-count notifications derived from registry changes."""

from __future__ import annotations

import logging

from models.chat_models import ChatSession
from models.envelopes import OnlineCountEnvelope, SystemEnvelope
from services.realtime.broadcaster import BroadcastEngine
from services.realtime.connection_registry import ConnectionRegistry

LOGGER = logging.getLogger(__name__)

WELCOME_TEXT = "Welcome to the chat! You are now connected."


class PresenceNotifier:
	"""Emit presence messages: the system text first, then the fresh count."""

	def __init__(self, registry: ConnectionRegistry, broadcaster: BroadcastEngine) -> None:
		self.registry = registry
		self.broadcaster = broadcaster

	async def welcome(self, session: ChatSession) -> None:
		"""Greet a newly opened session and tell it how many users are online."""
		if not await self.broadcaster.send(session, SystemEnvelope(text=WELCOME_TEXT)):
			LOGGER.warning("Could not deliver welcome message to session %s", session.session_id)
		count = await self.registry.online_count()
		if not await self.broadcaster.send(session, OnlineCountEnvelope(count=count)):
			LOGGER.warning("Could not deliver online count to session %s", session.session_id)

	async def announce_join(self, identity: str) -> None:
		LOGGER.info("User joined: %s", identity)
		await self.broadcaster.broadcast_all(SystemEnvelope(text=f"{identity} joined the chat"))
		await self.broadcast_online_count()

	async def announce_leave(self, identity: str) -> None:
		LOGGER.info("User left: %s", identity)
		await self.broadcaster.broadcast_all(SystemEnvelope(text=f"{identity} left the chat"))
		await self.broadcast_online_count()

	async def broadcast_online_count(self) -> None:
		count = await self.registry.online_count()
		await self.broadcaster.broadcast_all(OnlineCountEnvelope(count=count))
