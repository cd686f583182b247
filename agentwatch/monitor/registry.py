"""Registry of game sessions under observation.

Owned by the HeartbeatMonitor and shared with the slash command handler.
Identifiers are canonicalised to ``int`` on the way in, so ``"05"`` and
``"5"`` name the same session. Nothing here is persisted.
"""

import re

from agentwatch.monitor.errors import (
    AlreadyMonitored,
    InvalidIdentifier,
    NotMonitored,
    SessionNotFound,
)

_SESSION_ID_RE = re.compile(r"^[0-9]+$")


def parse_session_id(raw) -> int:
    """Parse an operator-supplied session id into a non-negative int."""
    if isinstance(raw, bool):
        raise InvalidIdentifier(str(raw))
    if isinstance(raw, int):
        if raw < 0:
            raise InvalidIdentifier(str(raw))
        return raw
    text = str(raw).strip()
    if not _SESSION_ID_RE.match(text):
        raise InvalidIdentifier(text)
    return int(text)


class SessionRegistry:
    """In-memory set of monitored session ids."""

    def __init__(self, status_fetcher):
        self._status_fetcher = status_fetcher
        self._sessions: set[int] = set()

    async def add(self, raw_id) -> int:
        """Start monitoring a session after confirming it exists."""
        session_id = parse_session_id(raw_id)
        if session_id in self._sessions:
            raise AlreadyMonitored(session_id)

        status = await self._status_fetcher.fetch(session_id)
        if not status.exists:
            raise SessionNotFound(session_id)

        # Another add may have landed while the status fetch was in flight.
        if session_id in self._sessions:
            raise AlreadyMonitored(session_id)
        self._sessions.add(session_id)
        return session_id

    def remove(self, raw_id) -> int:
        session_id = parse_session_id(raw_id)
        if session_id not in self._sessions:
            raise NotMonitored(session_id)
        self._sessions.discard(session_id)
        return session_id

    def list(self) -> list[int]:
        """Return monitored ids in ascending numeric order."""
        return sorted(self._sessions)

    def clear(self) -> int:
        """Drop every session. Returns how many were removed."""
        removed = len(self._sessions)
        self._sessions.clear()
        return removed

    def evict(self, session_id: int) -> bool:
        """Remove a session on behalf of the poll cycle. Returns False if absent."""
        if session_id not in self._sessions:
            return False
        self._sessions.discard(session_id)
        return True

    def __contains__(self, session_id) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __bool__(self) -> bool:
        return bool(self._sessions)
