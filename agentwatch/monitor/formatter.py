"""Slack message formatting for down agents and evicted sessions.

All down agents from one cycle go out as a single message, grouped per
session, so one alert fits in one cooldown window.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Any

from agentwatch.monitor.classifier import NO_DATA

ALERT_HEADLINE = "<!channel> The following agents are down:"

EVICTION_REASONS = {
    "ended": "has ended",
    "suspended": "has been suspended",
}


@dataclass
class DownAgent:
    agent_index: int
    session_id: int
    downtime_minutes: int

    @property
    def agent_number(self) -> int:
        return self.agent_index + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_index": self.agent_index,
            "session_id": self.session_id,
            "downtime_minutes": self.downtime_minutes,
        }


def group_by_session(entries: list[DownAgent]) -> dict[int, list[DownAgent]]:
    """Group entries by session, both levels in ascending order."""
    groups: dict[int, list[DownAgent]] = defaultdict(list)
    for entry in entries:
        groups[entry.session_id].append(entry)
    return {
        session_id: sorted(groups[session_id], key=lambda e: e.agent_index)
        for session_id in sorted(groups)
    }


def describe_downtime(minutes: int) -> str:
    if minutes == NO_DATA:
        return "no data available"
    unit = "minute" if minutes == 1 else "minutes"
    return f"down for {minutes} {unit}"


def format_agent_line(entry: DownAgent) -> str:
    return (
        f"[session-{entry.session_id}] agent-{entry.agent_number} :: "
        f"{describe_downtime(entry.downtime_minutes)}"
    )


def format_down_alert(entries: list[DownAgent]) -> str:
    """Render one composite alert covering every down agent in a cycle."""
    if not entries:
        raise ValueError("format_down_alert needs at least one entry")

    blocks = []
    for session_id, agents in group_by_session(entries).items():
        lines = [f"*Game session {session_id}* ({len(agents)} down)"]
        lines.extend(format_agent_line(a) for a in agents)
        blocks.append("\n".join(lines))
    return ALERT_HEADLINE + "\n" + "\n\n".join(blocks)


def format_eviction_notice(session_id: int, reason: str) -> str:
    """Render the one-time notice for a session dropped from monitoring."""
    description = EVICTION_REASONS.get(reason, f"is no longer active ({reason})")
    return (
        f"Game session {session_id} {description}. "
        f"It has been removed from heartbeat monitoring."
    )
