"""Health classification for a single agent's liveness record."""

import math
from dataclasses import dataclass
from typing import Any

from agentwatch.monitor.liveness import LivenessRecord

DOWN_THRESHOLD_MS = 10 * 60 * 1000
MS_PER_MINUTE = 60 * 1000
NO_DATA = -1

HEALTHY = "healthy"
DOWN = "down"
UNKNOWN = "unknown"


@dataclass
class HealthVerdict:
    status: str
    downtime_minutes: int = 0

    @property
    def needs_alert(self) -> bool:
        return self.status != HEALTHY

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "downtime_minutes": self.downtime_minutes}


def classify(
    now_ms: int | float,
    record: LivenessRecord | None,
    threshold_ms: int | float = DOWN_THRESHOLD_MS,
) -> HealthVerdict:
    """Classify an agent as healthy, down, or unknown."""
    timestamp = record.timestamp if record is not None else None
    if (
        not isinstance(timestamp, (int, float))
        or isinstance(timestamp, bool)
        or not math.isfinite(timestamp)
    ):
        return HealthVerdict(status=UNKNOWN, downtime_minutes=NO_DATA)

    age = now_ms - timestamp
    if age > threshold_ms:
        return HealthVerdict(status=DOWN, downtime_minutes=int(age // MS_PER_MINUTE))
    return HealthVerdict(status=HEALTHY)
