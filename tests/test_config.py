"""
Tests for toolgate configuration loading
"""

import pytest

from toolgate.config import ToolGateConfig
from toolgate.errors import ConfigError
from toolgate.integrations.klaviyo.client import BASE_URL, KLAVIYO_REVISION
from toolgate.scheduling import PastDuePolicy


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("TOOLGATE_API_KEY", raising=False)
    monkeypatch.delenv("TOOLGATE_CONFIG", raising=False)


class TestDefaults:

    def test_empty(self):
        config = ToolGateConfig.from_dict({})
        assert config.state_dir is None
        assert config.past_due_policy == PastDuePolicy.REJECT
        assert config.max_sleep_seconds == 60.0
        assert config.klaviyo.revision == KLAVIYO_REVISION
        assert config.klaviyo.base_url == BASE_URL
        assert config.server.api_key is None

    def test_load_without_path(self):
        assert ToolGateConfig.load() == ToolGateConfig()


class TestFromFile:

    def test_env_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv("STATE_ROOT", "/var/lib/toolgate")
        monkeypatch.setenv("GATE_KEY", "s3cret")
        path = tmp_path / "config.yaml"
        path.write_text(
            "state_dir: ${STATE_ROOT}\n"
            "past_due_policy: fire_immediately\n"
            "max_sleep_seconds: 15\n"
            "server:\n"
            "  api_key: ${GATE_KEY}\n"
        )

        config = ToolGateConfig.from_file(str(path))

        assert config.state_dir == "/var/lib/toolgate"
        assert config.past_due_policy == PastDuePolicy.FIRE_IMMEDIATELY
        assert config.max_sleep_seconds == 15.0
        assert config.server.api_key == "s3cret"

    def test_missing_variable(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NOT_SET_ANYWHERE", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text("state_dir: ${NOT_SET_ANYWHERE}\n")

        with pytest.raises(ValueError, match="NOT_SET_ANYWHERE"):
            ToolGateConfig.from_file(str(path))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("state_dir: [unclosed\n")
        with pytest.raises(ConfigError):
            ToolGateConfig.from_file(str(path))

    def test_load_from_env_path(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("max_sleep_seconds: 2\n")
        monkeypatch.setenv("TOOLGATE_CONFIG", str(path))

        assert ToolGateConfig.load().max_sleep_seconds == 2.0


class TestValidation:

    def test_bad_policy(self):
        with pytest.raises(ConfigError, match="past_due_policy"):
            ToolGateConfig.from_dict({"past_due_policy": "backfill"})

    @pytest.mark.parametrize("value", [0, -5, "soon", True])
    def test_bad_max_sleep(self, value):
        with pytest.raises(ConfigError):
            ToolGateConfig.from_dict({"max_sleep_seconds": value})

    def test_section_must_be_mapping(self):
        with pytest.raises(ConfigError):
            ToolGateConfig.from_dict({"klaviyo": ["not", "a", "mapping"]})

    def test_root_must_be_mapping(self):
        with pytest.raises(ConfigError):
            ToolGateConfig.from_dict(["a", "b"])

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("TOOLGATE_API_KEY", "from-env")
        assert ToolGateConfig.from_dict({}).server.api_key == "from-env"
