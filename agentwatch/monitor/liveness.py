"""Liveness lookups against the agents' Firestore working memory.

Each agent writes its thoughts to a document addressed by its game factory,
session and 1-based agent number. The newest thought is the liveness signal.
"""

import math
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import httpx

from agentwatch.monitor.errors import FetchFailure
from agentwatch.monitor.metadata import AgentDescriptor
from agentwatch.shared.logger import get_logger

FACTORY_SUFFIX_LENGTH = 5


@dataclass
class LivenessRecord:
    timestamp: int | float | None
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"timestamp": self.timestamp, "data": self.data}


def liveness_document_path(agent: AgentDescriptor) -> tuple[str, str]:
    """Return ``(collection, document_id)`` for an agent's working memory."""
    factory_suffix = agent.game_factory[-FACTORY_SUFFIX_LENGTH:]
    number = agent.agent_number
    collection = f"f_{factory_suffix}_s_{agent.session_id}_a_{number}"
    document_id = f"working-memory:cli:agent-{number}"
    return collection, document_id


def decode_value(value: dict[str, Any]) -> Any:
    """Convert a Firestore REST typed value into plain Python."""
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "nullValue" in value:
        return None
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    for key in ("stringValue", "timestampValue", "referenceValue", "bytesValue"):
        if key in value:
            return value[key]
    return None


def decode_fields(fields: dict[str, Any]) -> dict[str, Any]:
    return {name: decode_value(v) for name, v in fields.items()}


def _is_number(value) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def latest_thought(document: dict[str, Any] | None) -> LivenessRecord | None:
    """Pick the newest thought out of a decoded working-memory document.

    Returns None when the document, its ``value.thoughts`` list, or every
    entry in it is missing.
    """
    if not document:
        return None
    memory = document.get("value")
    if not isinstance(memory, dict):
        return None
    thoughts = memory.get("thoughts")
    if not isinstance(thoughts, list):
        return None

    entries = [t for t in thoughts if isinstance(t, dict)]
    if not entries:
        return None

    def sort_key(entry):
        ts = entry.get("timestamp")
        return ts if _is_number(ts) else float("-inf")

    latest = max(entries, key=sort_key)
    ts = latest.get("timestamp")
    return LivenessRecord(timestamp=ts if _is_number(ts) else None, data=latest)


class FirestoreLivenessStore:
    """Reads working-memory documents through the Firestore REST API."""

    def __init__(
        self,
        project_id: str,
        api_key: str = "",
        base_url: str = "https://firestore.googleapis.com/v1",
        timeout: float = 15,
    ):
        self._project_id = project_id
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self.logger = get_logger("liveness")

    def document_url(self, agent: AgentDescriptor) -> str:
        collection, document_id = liveness_document_path(agent)
        return (
            f"{self._base_url}/projects/{self._project_id}/databases/(default)/documents/"
            f"{quote(collection, safe='')}/{quote(document_id, safe=':')}"
        )

    async def fetch_latest(self, agent: AgentDescriptor) -> LivenessRecord | None:
        """Return the agent's newest thought, or None when there is no data."""
        url = self.document_url(agent)
        params = {"key": self._api_key} if self._api_key else None
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            raise FetchFailure(f"Firestore request failed for agent-{agent.agent_number}: {e}") from e

        if response.status_code == 404:
            self.logger.warning(
                f"No document found for agent-{agent.agent_number} in session {agent.session_id}"
            )
            return None
        if response.status_code // 100 != 2:
            raise FetchFailure(f"Firestore returned HTTP {response.status_code} for {url}")

        try:
            body = response.json()
        except ValueError as e:
            raise FetchFailure(f"Firestore returned invalid JSON for {url}") from e
        if not isinstance(body, dict):
            raise FetchFailure(f"Firestore returned a non-object body for {url}")

        document = decode_fields(body.get("fields", {}))
        record = latest_thought(document)
        if record is None:
            self.logger.warning(
                f"No thoughts for agent-{agent.agent_number} in session {agent.session_id}"
            )
        else:
            self.logger.info(
                f"Latest thought for agent-{agent.agent_number} in session "
                f"{agent.session_id}: timestamp {record.timestamp}",
                extra={"data": record.to_dict()},
            )
        return record
