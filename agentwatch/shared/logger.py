"""Structured JSON logging for agentwatch components.

Every line is one JSON object. Pass ``extra={"data": {...}}`` to attach
structured context such as a verdict or an eviction status.
"""

import json
import logging
from datetime import datetime, timezone

LOGGER_PREFIX = "agentwatch."


class JsonFormatter(logging.Formatter):
    """Renders a record as ``timestamp``, ``component``, ``level``, ``message``.

    ``data`` and ``exception`` are added only when the record carries them.
    """

    def format(self, record):
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "component": record.name.removeprefix(LOGGER_PREFIX),
            "level": record.levelname,
            "message": record.getMessage(),
        }
        if hasattr(record, "data"):
            entry["data"] = record.data
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def get_logger(
    component: str,
    log_file: str | None = None,
    level: int = logging.INFO,
) -> logging.Logger:
    """Return the ``agentwatch.<component>`` logger, attaching a JSON handler once.

    Components are the monitor's moving parts: "monitor", "notifier",
    "liveness", "slack_bridge" and so on. Output goes to stderr unless
    ``log_file`` is given.
    """
    logger = logging.getLogger(f"{LOGGER_PREFIX}{component}")
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)

    return logger
