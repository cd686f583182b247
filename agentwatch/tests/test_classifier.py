"""Tests for the health classifier."""

import pytest

from agentwatch.monitor.classifier import (
    DOWN,
    DOWN_THRESHOLD_MS,
    HEALTHY,
    NO_DATA,
    UNKNOWN,
    classify,
)
from agentwatch.monitor.liveness import LivenessRecord

NOW = 1_700_000_000_000


def test_no_record_is_unknown():
    verdict = classify(NOW, None)
    assert verdict.status == UNKNOWN
    assert verdict.downtime_minutes == NO_DATA
    assert verdict.needs_alert


def test_record_without_timestamp_is_unknown():
    verdict = classify(NOW, LivenessRecord(timestamp=None))
    assert verdict.status == UNKNOWN
    assert verdict.downtime_minutes == -1


def test_recent_thought_is_healthy():
    verdict = classify(NOW, LivenessRecord(timestamp=NOW - 60_000))
    assert verdict.status == HEALTHY
    assert not verdict.needs_alert


def test_exactly_at_threshold_is_healthy():
    verdict = classify(NOW, LivenessRecord(timestamp=NOW - DOWN_THRESHOLD_MS))
    assert verdict.status == HEALTHY


def test_just_past_threshold_is_down():
    verdict = classify(NOW, LivenessRecord(timestamp=NOW - DOWN_THRESHOLD_MS - 1))
    assert verdict.status == DOWN
    assert verdict.downtime_minutes == 10


@pytest.mark.parametrize("age_ms,minutes", [
    (600_001, 10),
    (659_999, 10),
    (660_000, 11),
    (3_600_000, 60),
    (90_061_000, 1501),
])
def test_downtime_is_floored_minutes(age_ms, minutes):
    verdict = classify(NOW, LivenessRecord(timestamp=NOW - age_ms))
    assert verdict.status == DOWN
    assert verdict.downtime_minutes == minutes


def test_future_timestamp_is_healthy():
    verdict = classify(NOW, LivenessRecord(timestamp=NOW + 5_000))
    assert verdict.status == HEALTHY


def test_custom_threshold():
    verdict = classify(NOW, LivenessRecord(timestamp=NOW - 120_000), threshold_ms=60_000)
    assert verdict.status == DOWN
    assert verdict.downtime_minutes == 2


def test_classification_is_deterministic():
    record = LivenessRecord(timestamp=NOW - 700_000)
    assert classify(NOW, record) == classify(NOW, record)


@pytest.mark.parametrize("timestamp", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_timestamp_is_unknown(timestamp):
    verdict = classify(NOW, LivenessRecord(timestamp=timestamp))
    assert verdict.status == UNKNOWN
    assert verdict.downtime_minutes == NO_DATA
    assert verdict.needs_alert
