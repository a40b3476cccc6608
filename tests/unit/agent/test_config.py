import json
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from agent.config import ENV_VARS, AgentSettings, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for env_var in ENV_VARS.values():
        monkeypatch.delenv(env_var, raising=False)
    with patch("agent.config.load_dotenv"):
        yield


class TestAgentSettings:
    def test_defaults(self):
        settings = AgentSettings()

        assert settings.controller_address == "tcp://127.0.0.1:5556"
        assert settings.disconnection_timeout_ms == 5000
        assert settings.send_interval_ms == 10
        assert settings.progress_step == 5
        assert settings.download_part_size == 65536

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValidationError):
            AgentSettings(disconnection_timeout_ms=0)

    def test_rejects_progress_step_over_100(self):
        with pytest.raises(ValidationError):
            AgentSettings(progress_step=101)


class TestLoadSettings:
    def test_missing_file_uses_defaults(self, tmp_path):
        settings = load_settings(str(tmp_path / "absent.json"))
        assert settings == AgentSettings()

    def test_file_overrides_defaults(self, tmp_path):
        config = tmp_path / "agent.json"
        config.write_text(json.dumps({"controller_address": "tcp://10.1.1.1:7000", "progress_step": 10}))

        settings = load_settings(str(config))

        assert settings.controller_address == "tcp://10.1.1.1:7000"
        assert settings.progress_step == 10

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        config = tmp_path / "agent.json"
        config.write_text(json.dumps({"send_interval_ms": 50}))
        monkeypatch.setenv("AGENT_SEND_INTERVAL_MS", "20")

        assert load_settings(str(config)).send_interval_ms == 20

    def test_explicit_overrides_win(self, tmp_path, monkeypatch):
        monkeypatch.setenv("AGENT_CONTROLLER_ADDRESS", "tcp://env:1")

        settings = load_settings(str(tmp_path / "absent.json"), controller_address="tcp://cli:2")

        assert settings.controller_address == "tcp://cli:2"

    def test_none_overrides_are_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setenv("AGENT_CONTROLLER_ADDRESS", "tcp://env:1")

        settings = load_settings(str(tmp_path / "absent.json"), controller_address=None)

        assert settings.controller_address == "tcp://env:1"

    def test_broken_file_falls_back_to_defaults(self, tmp_path):
        config = tmp_path / "agent.json"
        config.write_text("{not json")

        assert load_settings(str(config)) == AgentSettings()

    def test_unknown_keys_are_ignored(self, tmp_path):
        config = tmp_path / "agent.json"
        config.write_text(json.dumps({"favourite_colour": "blue"}))

        assert load_settings(str(config)) == AgentSettings()

    def test_invalid_environment_value_raises(self, tmp_path, monkeypatch):
        monkeypatch.setenv("AGENT_DISCONNECTION_TIMEOUT_MS", "soon")

        with pytest.raises(ValidationError):
            load_settings(str(tmp_path / "absent.json"))
