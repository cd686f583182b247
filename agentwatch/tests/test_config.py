import json
import pytest
from agentwatch.shared.config import (
    DEFAULT_CONFIG,
    apply_env_overrides,
    load_config,
    load_monitor_config,
)


def test_load_config_from_file(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({
        "poll_interval_seconds": 120,
        "initial_sessions": ["3", "4"],
    }))
    config = load_config(str(config_file))
    assert config["poll_interval_seconds"] == 120
    assert config["initial_sessions"] == ["3", "4"]


def test_load_config_with_defaults(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"poll_interval_seconds": 30}))
    config = load_config(str(config_file), defaults=DEFAULT_CONFIG)
    assert config["poll_interval_seconds"] == 30
    assert config["notify_cooldown_seconds"] == 60


def test_load_config_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config("/nonexistent/config.json")


def test_env_overrides_file_values():
    config = {"slack_webhook": "https://from-file", "graphql_endpoint": "https://gql"}
    merged = apply_env_overrides(config, {"SLACK_WEBHOOK": "https://from-env"})
    assert merged["slack_webhook"] == "https://from-env"
    assert merged["graphql_endpoint"] == "https://gql"
    assert config["slack_webhook"] == "https://from-file"


def test_empty_env_value_ignored():
    merged = apply_env_overrides({"firebase_api_key": "abc"}, {"FIREBASE_API_KEY": ""})
    assert merged["firebase_api_key"] == "abc"


def test_load_monitor_config_without_file(monkeypatch):
    monkeypatch.setenv("FIREBASE_PROJECT_ID", "game-proj")
    config = load_monitor_config()
    assert config["poll_interval_seconds"] == 300
    assert config["down_threshold_minutes"] == 10
    assert config["firebase_project_id"] == "game-proj"


def test_load_config_rejects_non_object(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(["poll_interval_seconds", 60]))
    with pytest.raises(ValueError):
        load_config(str(path), defaults=DEFAULT_CONFIG)


def test_load_config_does_not_mutate_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"poll_interval_seconds": 30}))
    defaults = {"poll_interval_seconds": 300}
    assert load_config(str(path), defaults=defaults)["poll_interval_seconds"] == 30
    assert defaults == {"poll_interval_seconds": 300}
