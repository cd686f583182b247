"""Configuration loader for the agentwatch monitor."""

import json
import os
from pathlib import Path
from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "poll_interval_seconds": 300,
    "down_threshold_minutes": 10,
    "notify_cooldown_seconds": 60,
    "http_timeout_seconds": 15,
    "graphql_endpoint": "https://qip.systems/v1/graphql",
    "firestore_base_url": "https://firestore.googleapis.com/v1",
    "firebase_project_id": "",
    "firebase_api_key": "",
    "slack_webhook": "",
    "slack_app_token": "",
    "slack_command": "/heartbeat",
    "command_bridge_enabled": True,
    "bridge_max_startup_attempts": 5,
    "initial_sessions": [],
}

# Environment variable -> config key. Environment wins over the file.
ENV_OVERRIDES = {
    "SLACK_WEBHOOK": "slack_webhook",
    "SLACK_APP_TOKEN": "slack_app_token",
    "FIREBASE_API_KEY": "firebase_api_key",
    "FIREBASE_PROJECT_ID": "firebase_project_id",
    "GRAPHQL_ENDPOINT": "graphql_endpoint",
}


def load_config(config_path: str, defaults: dict[str, Any] | None = None) -> dict[str, Any]:
    """Read a monitor config file and layer it over ``defaults``.

    The file must hold a single JSON object. Keys it leaves out keep their
    default value, so a file only needs the settings it changes.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path) as f:
        config = json.load(f)
    if not isinstance(config, dict):
        raise ValueError(f"Config file {config_path} must contain a JSON object")

    return {**(defaults or {}), **config}


def apply_env_overrides(config: dict[str, Any], environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Return a copy of ``config`` with secrets filled in from the environment.

    Empty environment values are ignored so an unset variable never blanks
    out a value from the file.
    """
    environ = os.environ if environ is None else environ
    merged = dict(config)
    for env_name, key in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            merged[key] = value
    return merged


def load_monitor_config(config_path: str | None = None) -> dict[str, Any]:
    """Build the effective monitor config: defaults, then file, then environment."""
    if config_path:
        config = load_config(config_path, defaults=DEFAULT_CONFIG)
    else:
        config = dict(DEFAULT_CONFIG)
    return apply_env_overrides(config)
