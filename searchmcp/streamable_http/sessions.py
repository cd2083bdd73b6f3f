"""
Session registry for initialized MCP clients.

Sessions are created on ``initialize`` and live for the lifetime of the
process. They are never updated or removed.
"""

import asyncio
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """An initialized client session."""
    id: str
    initialized_at: datetime


class SessionRegistry:
    """Insert-only registry of sessions, safe for concurrent handlers."""

    def __init__(self, token_bytes: int = 16):
        """
        Initialize the registry.

        Args:
            token_bytes: Random bytes per session identifier
        """
        self._token_bytes = token_bytes
        self._sessions: Dict[str, Session] = {}
        self._lock = asyncio.Lock()

    async def create(self) -> str:
        """Register a new session and return its identifier."""
        async with self._lock:
            session_id = secrets.token_urlsafe(self._token_bytes)
            while session_id in self._sessions:
                session_id = secrets.token_urlsafe(self._token_bytes)

            self._sessions[session_id] = Session(
                id=session_id,
                initialized_at=datetime.now(timezone.utc),
            )

        logger.debug(f"Created session {session_id}")
        return session_id

    def size(self) -> int:
        """Number of sessions created so far."""
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
