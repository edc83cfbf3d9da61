"""Process-wide table of active sessions, keyed by username.

The registry hands out the Session object itself, never a copy, so an
``authenticate`` or ``close`` through one lookup is visible to every later
lookup of the same username. All access goes through a lock.
"""

import threading
from typing import Any

from untis_client.logging import get_logger
from untis_client.session import Session

logger = get_logger(__name__)


class ClientRegistry:
    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def __contains__(self, username: object) -> bool:
        with self._lock:
            return username in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def get(self, username: str) -> Session | None:
        with self._lock:
            return self._sessions.get(username)

    def put(self, session: Session) -> Session | None:
        """Register ``session`` as the active session for its username.

        Returns the session it displaced, if any. Closing that session is
        up to the caller.
        """
        with self._lock:
            replaced = self._sessions.get(session.username)
            self._sessions[session.username] = session
        if replaced is not None and replaced is not session:
            logger.info("session_replaced", username=session.username)
            return replaced
        return None

    def remove(self, username: str) -> Session | None:
        with self._lock:
            return self._sessions.pop(username, None)

    def create(self, username: str, password: str, **kwargs: Any) -> Session:
        """Build a fresh unauthenticated Session and register it.

        Extra keyword arguments are passed to the Session constructor.
        """
        session = Session(username, password, **kwargs)
        self.put(session)
        return session

    def usernames(self) -> list[str]:
        with self._lock:
            return list(self._sessions)


# Shared by all callers in the process
default_registry = ClientRegistry()
