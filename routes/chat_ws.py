"""WebSocket endpoint for the chat relay."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, WebSocket, WebSocketException, status

from models.chat_models import ChatSession
from services.realtime.ws_session import ChatSessionHandler

LOGGER = logging.getLogger(__name__)

router = APIRouter()


def _require_chat_handler(websocket: WebSocket) -> ChatSessionHandler:
	handler = getattr(websocket.app.state, "chat_handler", None)
	if handler is None:
		raise WebSocketException(code=status.WS_1011_INTERNAL_ERROR, reason="Chat relay unavailable")
	return handler


@router.websocket("/")
@router.websocket("/ws")
async def chat_socket(websocket: WebSocket, handler: ChatSessionHandler = Depends(_require_chat_handler)):
	"""Relay chat and typing events for one client until it disconnects."""
	await websocket.accept()
	session = ChatSession(websocket=websocket)
	LOGGER.info("New client connected: %s", session.session_id)
	try:
		await handler.open(session)
		while True:
			try:
				message = await websocket.receive()
			except Exception as exc:
				LOGGER.error("Client error on session %s: %s", session.session_id, exc)
				break
			if message["type"] == "websocket.disconnect":
				break
			raw = message.get("text")
			if raw is None:
				raw = message.get("bytes") or b""
			try:
				await handler.handle(session, raw)
			except KeyError:
				LOGGER.warning("Session %s is no longer registered; closing", session.session_id)
				break
	finally:
		LOGGER.info(
			"Client disconnected: %s (connected %.1fs)",
			session.session_id,
			time.time() - session.connected_at,
		)
		await handler.close(session)
