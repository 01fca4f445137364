from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List, Optional

import pytest
from starlette.websockets import WebSocketState

from models.chat_models import ChatSession
from services.realtime.broadcaster import BroadcastEngine
from services.realtime.connection_registry import ConnectionRegistry
from services.realtime.ws_session import ChatSessionHandler


class FakeWebSocket:
    """Stand-in for a Starlette websocket that records outbound frames."""

    def __init__(self, *, fail: bool = False, delay: float = 0.0) -> None:
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.fail = fail
        self.delay = delay
        self.sent: List[str] = []
        self.closed_with: Optional[tuple] = None

    async def send_text(self, text: str) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("connection reset by peer")
        self.sent.append(text)

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> None:
        self.closed_with = (code, reason)
        self.client_state = WebSocketState.DISCONNECTED
        self.application_state = WebSocketState.DISCONNECTED

    @property
    def messages(self) -> List[Dict[str, Any]]:
        return [json.loads(text) for text in self.sent]


def messages_of(session: ChatSession) -> List[Dict[str, Any]]:
    return session.websocket.messages


def clear(*sessions: ChatSession) -> None:
    for session in sessions:
        session.websocket.sent.clear()


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def broadcaster(registry: ConnectionRegistry) -> BroadcastEngine:
    return BroadcastEngine(registry, send_timeout=0.05)


@pytest.fixture
def handler(registry: ConnectionRegistry, broadcaster: BroadcastEngine) -> ChatSessionHandler:
    return ChatSessionHandler(registry, broadcaster)


@pytest.fixture
def connect(handler: ChatSessionHandler):
    """Open a fake session through the dispatcher, as the websocket route does."""

    async def _connect(**kwargs: Any) -> ChatSession:
        session = ChatSession(websocket=FakeWebSocket(**kwargs))
        await handler.open(session)
        return session

    return _connect
