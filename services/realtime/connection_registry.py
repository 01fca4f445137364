"""In-memory registry of live chat sessions and their bound usernames."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from models.chat_models import ChatSession, SessionPhase

LOGGER = logging.getLogger(__name__)


class ConnectionRegistry:
	"""Track live sessions and the username each one has claimed.

	Every read and write goes through one asyncio lock. Callers only ever get
	snapshots back, never the underlying mapping.
	"""

	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._identities: Dict[ChatSession, Optional[str]] = {}

	async def register(self, session: ChatSession) -> None:
		"""Add a session with no bound username."""
		async with self._lock:
			self._identities[session] = None
			session.phase = SessionPhase.UNBOUND
			total = len(self._identities)
		LOGGER.info("Session %s registered (%d connected)", session.session_id, total)

	async def bind(self, session: ChatSession, identity: str) -> Optional[str]:
		"""Set the username for a session and return the previous one.

		Rebinding overwrites silently. Raises KeyError for unknown sessions.
		"""
		async with self._lock:
			if session not in self._identities:
				raise KeyError(f"Session {session.session_id} not registered")
			previous = self._identities[session]
			self._identities[session] = identity
			session.phase = SessionPhase.BOUND
		return previous

	async def bind_if_unbound(self, session: ChatSession, identity: str) -> bool:
		"""Bind only on the unbound -> bound transition; True when it happened."""
		async with self._lock:
			if session not in self._identities:
				raise KeyError(f"Session {session.session_id} not registered")
			if self._identities[session] is not None:
				return False
			self._identities[session] = identity
			session.phase = SessionPhase.BOUND
		return True

	async def unregister(self, session: ChatSession) -> Optional[str]:
		"""Remove a session, returning its username if one was bound."""
		async with self._lock:
			identity = self._identities.pop(session, None)
			session.phase = SessionPhase.CLOSED
			total = len(self._identities)
		LOGGER.info("Session %s unregistered (%d connected)", session.session_id, total)
		return identity

	async def identity_of(self, session: ChatSession) -> Optional[str]:
		async with self._lock:
			return self._identities.get(session)

	async def online_count(self) -> int:
		"""Number of sessions with a bound username."""
		async with self._lock:
			return sum(1 for identity in self._identities.values() if identity is not None)

	async def session_count(self) -> int:
		async with self._lock:
			return len(self._identities)

	async def all_sessions(self) -> List[ChatSession]:
		"""Return a snapshot of live sessions in registration order."""
		async with self._lock:
			return list(self._identities)

	async def drain(self) -> List[ChatSession]:
		"""Remove every session at once and return them, for shutdown."""
		async with self._lock:
			sessions = list(self._identities)
			self._identities.clear()
			for session in sessions:
				session.phase = SessionPhase.CLOSED
		return sessions
