"""Connection session models for the chat relay."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from uuid import uuid4

from fastapi import WebSocket


class SessionPhase(str, Enum):
	"""Lifecycle of one connection: unbound until a valid message names it."""

	UNBOUND = "unbound"
	BOUND = "bound"
	CLOSED = "closed"


@dataclass(eq=False)
class ChatSession:
	"""One live websocket connection.

	Sessions compare by identity, so two sessions are never equal even when
	they claim the same username. The bound username itself lives in the
	connection registry.
	"""

	websocket: WebSocket
	session_id: str = field(default_factory=lambda: uuid4().hex)
	phase: SessionPhase = SessionPhase.UNBOUND
	connected_at: float = field(default_factory=lambda: time.time())
	send_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
