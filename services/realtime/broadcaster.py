"""Best-effort fan-out of envelopes to live chat sessions."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Iterable, Optional, Union

from pydantic import BaseModel
from starlette.websockets import WebSocketState

from models.chat_models import ChatSession, SessionPhase
from services.realtime.connection_registry import ConnectionRegistry

LOGGER = logging.getLogger(__name__)

Envelope = Union[BaseModel, Dict[str, Any]]


def serialize_envelope(envelope: Envelope) -> str:
	"""Encode an envelope as a JSON text frame."""
	if isinstance(envelope, BaseModel):
		return envelope.model_dump_json(by_alias=True)
	return json.dumps(envelope)


def is_open(session: ChatSession) -> bool:
	"""Return True when both sides of the session's websocket are connected."""
	websocket = session.websocket
	return (
		session.phase is not SessionPhase.CLOSED
		and websocket.client_state == WebSocketState.CONNECTED
		and websocket.application_state == WebSocketState.CONNECTED
	)


class BroadcastEngine:
	"""Deliver envelopes to every session, all but one, or a single session.

	A failed or timed-out send is logged and skipped. It never aborts the rest
	of the fan-out and never removes the session from the registry.
	"""

	def __init__(self, registry: ConnectionRegistry, send_timeout: float = 5.0) -> None:
		self.registry = registry
		self.send_timeout = send_timeout

	async def broadcast_all(self, envelope: Envelope) -> int:
		"""Send to every live session, the originator included."""
		return await self._fan_out(envelope, excluded=None)

	async def broadcast_except(self, envelope: Envelope, excluded: ChatSession) -> int:
		"""Send to every live session except ``excluded``."""
		return await self._fan_out(envelope, excluded=excluded)

	async def send(self, session: ChatSession, envelope: Envelope) -> bool:
		"""Unicast an envelope to one session."""
		return await self._deliver(session, serialize_envelope(envelope))

	async def _fan_out(self, envelope: Envelope, excluded: Optional[ChatSession]) -> int:
		text = serialize_envelope(envelope)
		sessions = await self.registry.all_sessions()
		targets = [session for session in sessions if session is not excluded]
		LOGGER.debug("Broadcasting %s to %d sessions", text, len(targets))
		return await self._deliver_many(targets, text)

	async def _deliver_many(self, targets: Iterable[ChatSession], text: str) -> int:
		results = await asyncio.gather(*(self._deliver(session, text) for session in targets))
		return sum(1 for delivered in results if delivered)

	async def _deliver(self, session: ChatSession, text: str) -> bool:
		if not is_open(session):
			return False
		try:
			async with session.send_lock:
				await asyncio.wait_for(session.websocket.send_text(text), timeout=self.send_timeout)
		except asyncio.TimeoutError:
			LOGGER.warning(
				"Send to session %s timed out after %.1fs", session.session_id, self.send_timeout
			)
			return False
		except Exception as exc:
			LOGGER.warning("Error sending to session %s: %s", session.session_id, exc)
			return False
		return True
