"""Agent and session metadata from the game's GraphQL API.

The endpoint is Hasura-style: a POST with ``{"query", "variables"}`` that
answers ``{"data": ...}`` or ``{"errors": [...]}``. The session list has no
server-side filter, so a single-session status lookup reads the whole list.
"""

from dataclasses import dataclass
from typing import Any

import httpx

from agentwatch.monitor.errors import FetchFailure
from agentwatch.shared.logger import get_logger

AGENTS_QUERY = """
query AgentsForSessions($sessionIds: [Int!]) {
  agent(where: {sessionId: {_in: $sessionIds}}) {
    agentIndex
    sessionId
    session {
      gameFactory
      index
    }
  }
}
"""

SESSIONS_QUERY = """
query Sessions {
  session {
    index
    address
    gameOver
    gameSuspended
  }
}
"""


@dataclass
class AgentDescriptor:
    agent_index: int
    session_id: int
    game_factory: str

    @property
    def agent_number(self) -> int:
        """1-based agent number used for display and storage keys."""
        return self.agent_index + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_index": self.agent_index,
            "session_id": self.session_id,
            "game_factory": self.game_factory,
        }


@dataclass
class SessionStatus:
    exists: bool
    ended: bool = False
    suspended: bool = False
    fetch_failed: bool = False

    @classmethod
    def not_found(cls) -> "SessionStatus":
        return cls(exists=False)

    @classmethod
    def unreachable(cls) -> "SessionStatus":
        """Status used when the lookup itself failed.

        Fails closed: reported as nonexistent so the session is evicted
        rather than alerted on. ``fetch_failed`` keeps the two cases apart.
        """
        return cls(exists=False, fetch_failed=True)

    @property
    def eviction_reason(self) -> str | None:
        if not self.exists:
            return "not_found"
        if self.ended:
            return "ended"
        if self.suspended:
            return "suspended"
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "exists": self.exists,
            "ended": self.ended,
            "suspended": self.suspended,
            "fetch_failed": self.fetch_failed,
        }


class GraphQLMetadataSource:
    """Reads agent rosters and the session list over GraphQL."""

    def __init__(self, endpoint: str, timeout: float = 15):
        self._endpoint = endpoint
        self._timeout = timeout
        self.logger = get_logger("metadata")

    async def fetch_agents(self, session_ids: list[int]) -> list[AgentDescriptor]:
        """Fetch every agent in the given sessions in one batched query."""
        if not session_ids:
            return []
        data = await self._query(AGENTS_QUERY, {"sessionIds": list(session_ids)})
        agents = []
        for item in data.get("agent") or []:
            session = item.get("session") or {}
            session_id = item.get("sessionId", session.get("index"))
            try:
                agents.append(AgentDescriptor(
                    agent_index=int(item["agentIndex"]),
                    session_id=int(session_id),
                    game_factory=str(session.get("gameFactory") or ""),
                ))
            except (KeyError, TypeError, ValueError):
                self.logger.warning(f"Skipping malformed agent row: {item}")
        self.logger.info(f"Fetched {len(agents)} agents for sessions {list(session_ids)}")
        return agents

    async def fetch_sessions(self) -> list[dict[str, Any]]:
        """Fetch the full session list."""
        data = await self._query(SESSIONS_QUERY)
        sessions = data.get("session")
        return sessions if isinstance(sessions, list) else []

    async def _query(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._endpoint, json=payload)
        except httpx.HTTPError as e:
            raise FetchFailure(f"GraphQL request failed: {e}") from e

        if response.status_code // 100 != 2:
            raise FetchFailure(f"GraphQL endpoint returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise FetchFailure("GraphQL endpoint returned invalid JSON") from e

        if body.get("errors"):
            messages = "; ".join(str(err.get("message", err)) for err in body["errors"])
            raise FetchFailure(f"GraphQL errors: {messages}")
        return body.get("data") or {}


class SessionStatusFetcher:
    """Answers "does this session still exist, and is its game still running?"."""

    def __init__(self, source: GraphQLMetadataSource):
        self._source = source
        self.logger = get_logger("session_status")

    async def fetch(self, session_id: int) -> SessionStatus:
        try:
            sessions = await self._source.fetch_sessions()
        except FetchFailure as e:
            self.logger.error(f"Status lookup for session {session_id} failed: {e}")
            return SessionStatus.unreachable()
        return status_from_sessions(session_id, sessions)


def status_from_sessions(session_id: int, sessions: list[dict[str, Any]]) -> SessionStatus:
    """Locate ``session_id`` in a session list and read its flags verbatim."""
    for entry in sessions:
        try:
            index = int(entry.get("index"))
        except (TypeError, ValueError):
            continue
        if index == session_id:
            return SessionStatus(
                exists=True,
                ended=bool(entry.get("gameOver")),
                suspended=bool(entry.get("gameSuspended")),
            )
    return SessionStatus.not_found()
