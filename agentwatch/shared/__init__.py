"""Shared utilities for agentwatch."""

from agentwatch.shared.config import load_config, load_monitor_config
from agentwatch.shared.logger import get_logger
from agentwatch.shared.slack_bridge import SlackBridge

__all__ = ["load_config", "load_monitor_config", "get_logger", "SlackBridge"]
