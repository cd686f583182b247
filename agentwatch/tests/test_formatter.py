"""Tests for alert formatting."""

import re

import pytest

from agentwatch.monitor.classifier import NO_DATA
from agentwatch.monitor.formatter import (
    ALERT_HEADLINE,
    DownAgent,
    format_down_alert,
    format_eviction_notice,
    group_by_session,
)

LINE_RE = re.compile(r"^\[session-(\d+)\] agent-(\d+) :: (?:no data available|down for (\d+) minutes?)$")


def parse_alert(text: str) -> set[tuple[int, int, int]]:
    """Read (session_id, agent_index, downtime) triples back out of an alert."""
    triples = set()
    for line in text.splitlines():
        match = LINE_RE.match(line)
        if match:
            minutes = int(match.group(3)) if match.group(3) else NO_DATA
            triples.add((int(match.group(1)), int(match.group(2)) - 1, minutes))
    return triples


def test_single_agent_no_data():
    text = format_down_alert([DownAgent(agent_index=0, session_id=3, downtime_minutes=NO_DATA)])
    assert text.startswith(ALERT_HEADLINE)
    assert "*Game session 3* (1 down)" in text
    assert "[session-3] agent-1 :: no data available" in text


def test_downtime_wording():
    text = format_down_alert([
        DownAgent(agent_index=1, session_id=2, downtime_minutes=1),
        DownAgent(agent_index=2, session_id=2, downtime_minutes=25),
    ])
    assert "[session-2] agent-2 :: down for 1 minute" in text
    assert "[session-2] agent-3 :: down for 25 minutes" in text


def test_groups_and_orders_sessions_and_agents():
    entries = [
        DownAgent(agent_index=2, session_id=10, downtime_minutes=12),
        DownAgent(agent_index=0, session_id=9, downtime_minutes=NO_DATA),
        DownAgent(agent_index=0, session_id=10, downtime_minutes=15),
        DownAgent(agent_index=1, session_id=9, downtime_minutes=30),
    ]
    lines = [l for l in format_down_alert(entries).splitlines() if l.startswith("[")]
    assert lines == [
        "[session-9] agent-1 :: no data available",
        "[session-9] agent-2 :: down for 30 minutes",
        "[session-10] agent-1 :: down for 15 minutes",
        "[session-10] agent-3 :: down for 12 minutes",
    ]


def test_session_headers_numeric_order():
    entries = [DownAgent(0, sid, 11) for sid in (20, 3, 100)]
    text = format_down_alert(entries)
    positions = [text.index(f"*Game session {sid}*") for sid in (3, 20, 100)]
    assert positions == sorted(positions)


def test_parse_back_reconstructs_input():
    entries = [
        DownAgent(agent_index=0, session_id=4, downtime_minutes=NO_DATA),
        DownAgent(agent_index=3, session_id=4, downtime_minutes=11),
        DownAgent(agent_index=1, session_id=1, downtime_minutes=1),
        DownAgent(agent_index=5, session_id=22, downtime_minutes=240),
    ]
    triples = {(e.session_id, e.agent_index, e.downtime_minutes) for e in entries}
    text = format_down_alert(entries)
    assert parse_alert(text) == triples
    assert len([l for l in text.splitlines() if LINE_RE.match(l)]) == len(entries)


def test_group_by_session():
    entries = [DownAgent(1, 5, 11), DownAgent(0, 2, 12), DownAgent(0, 5, 13)]
    groups = group_by_session(entries)
    assert list(groups) == [2, 5]
    assert [e.agent_index for e in groups[5]] == [0, 1]


def test_empty_input_rejected():
    with pytest.raises(ValueError):
        format_down_alert([])


def test_eviction_notice_ended():
    text = format_eviction_notice(3, "ended")
    assert "Game session 3 has ended" in text
    assert "removed" in text


def test_eviction_notice_suspended():
    assert "has been suspended" in format_eviction_notice(8, "suspended")
