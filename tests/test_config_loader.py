"""Tests for the config loader and config validation."""

import os
import tempfile
from pathlib import Path

import pytest
import yaml

from free2api.config import GatewayConfig, build_gateway_config
from free2api.config_loader import (
    _substitute_env_vars,
    load_config,
    load_gateway_config,
    resolve_env_path,
)
from free2api.core.exceptions import ConfigurationError


class TestLoadConfig:
    """Tests for loading configuration from YAML files."""

    def test_loads_simple_config(self):
        """Test loading a simple configuration."""
        config_data = {"upstream": {"url": "http://test.local/api/generate"}}

        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            yaml.safe_dump(config_data, f)
            f.flush()

            try:
                result = load_config(f.name)
                assert result["upstream"]["url"] == "http://test.local/api/generate"
            finally:
                os.unlink(f.name)

    def test_raises_error_for_missing_config(self):
        """Test that error is raised for missing config file."""
        with pytest.raises(ConfigurationError, match="Config file not found"):
            load_config("/nonexistent/path/config.yaml")

    def test_rejects_non_mapping_file(self, tmp_path):
        """A YAML list at the top level is not a config."""
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            load_config(str(path))

    def test_rejects_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("server: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(str(path))

    def test_empty_file_is_empty_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)) == {}

    def test_substitutes_environment_variables(self, tmp_path, monkeypatch):
        """Test that environment variables are substituted."""
        monkeypatch.setenv("TEST_GATEWAY_KEY", "my-secret-key")
        path = tmp_path / "config.yaml"
        path.write_text("auth:\n  api_master_key: ${TEST_GATEWAY_KEY}\n", encoding="utf-8")

        result = load_config(str(path))
        assert result["auth"]["api_master_key"] == "my-secret-key"

    def test_env_file_next_to_config(self, tmp_path, monkeypatch):
        """configs/config_<name>.yaml reads configs/.env_<name>."""
        monkeypatch.delenv("FILE_ONLY_KEY", raising=False)
        path = tmp_path / "config_local.yaml"
        path.write_text("auth:\n  api_master_key: ${FILE_ONLY_KEY}\n", encoding="utf-8")
        (tmp_path / ".env_local").write_text("FILE_ONLY_KEY=from-env-file\n", encoding="utf-8")

        result = load_config(str(path))
        assert result["auth"]["api_master_key"] == "from-env-file"

    def test_env_file_wins_over_process_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SHARED_KEY", "from-process")
        path = tmp_path / "config.yaml"
        path.write_text("auth:\n  api_master_key: ${SHARED_KEY}\n", encoding="utf-8")
        (tmp_path / ".env").write_text("SHARED_KEY=from-file\n", encoding="utf-8")

        assert load_config(str(path))["auth"]["api_master_key"] == "from-file"

    def test_substitution_can_be_disabled(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("auth:\n  api_master_key: ${ANY_VAR}\n", encoding="utf-8")
        result = load_config(str(path), substitute_env=False)
        assert result["auth"]["api_master_key"] == "${ANY_VAR}"

    def test_config_path_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "other.yaml"
        path.write_text("server:\n  port: 4100\n", encoding="utf-8")
        monkeypatch.setenv("FREE2API_CONFIG", str(path))
        assert load_config()["server"]["port"] == 4100

    def test_shipped_default_config_loads(self, monkeypatch):
        """The bundled configs/config_default.yaml is a valid config."""
        monkeypatch.delenv("FREE2API_CONFIG", raising=False)
        monkeypatch.delenv("FREE2API_API_KEY", raising=False)
        monkeypatch.delenv("FREE2API_HOST", raising=False)
        monkeypatch.delenv("FREE2API_PORT", raising=False)

        config = load_gateway_config()
        assert isinstance(config, GatewayConfig)
        assert config.server.port == 3000
        assert config.upstream.url.endswith("/api/generate")
        assert config.models.default == "free2gpt-general"


class TestResolveEnvPath:
    def test_suffix_pairing(self):
        assert resolve_env_path(Path("/x/config_default.yaml")) == Path("/x/.env_default")

    def test_plain_name_uses_dotenv(self):
        assert resolve_env_path(Path("/x/gateway.yaml")) == Path("/x/.env")


class TestSubstituteEnvVars:
    """Tests for environment variable substitution."""

    def test_substitutes_braced_syntax(self, monkeypatch):
        monkeypatch.setenv("MY_VAR", "my-value")
        assert _substitute_env_vars("${MY_VAR}") == "my-value"

    def test_substitutes_simple_syntax(self, monkeypatch):
        monkeypatch.setenv("MY_VAR", "my-value")
        assert _substitute_env_vars("$MY_VAR") == "my-value"

    def test_unset_variable_becomes_empty(self, monkeypatch):
        """Unset variables leave optional settings empty."""
        monkeypatch.delenv("DEFINITELY_NOT_SET_VAR", raising=False)
        assert _substitute_env_vars("${DEFINITELY_NOT_SET_VAR}") == ""

    def test_handles_nested_structures(self, monkeypatch):
        monkeypatch.setenv("NESTED_VAR", "nested-value")
        data = {"level1": {"level2": ["${NESTED_VAR}", 5]}}
        assert _substitute_env_vars(data) == {"level1": {"level2": ["nested-value", 5]}}

    def test_preserves_non_string_values(self):
        assert _substitute_env_vars({"n": 3, "b": True, "none": None}) == {
            "n": 3,
            "b": True,
            "none": None,
        }


class TestBuildGatewayConfig:
    """Tests for validation and defaults of the frozen config."""

    def test_defaults(self):
        config = build_gateway_config({}, environ={})
        assert config.server.host == "127.0.0.1"
        assert config.server.port == 3000
        assert config.auth.api_master_key == ""
        assert config.models.available == ("free2gpt-general", "gpt-3.5-turbo", "gpt-4o-mini")
        assert config.stream.channel_capacity == 1
        assert config.logging.level == "INFO"
        assert len(config.fingerprint.user_agents) >= 1

    def test_config_is_frozen(self):
        config = build_gateway_config({}, environ={})
        with pytest.raises(AttributeError):
            config.server.port = 1  # type: ignore[misc]

    def test_environment_overrides_file(self):
        config = build_gateway_config(
            {"server": {"host": "127.0.0.1", "port": 3000}, "auth": {"api_master_key": "file"}},
            environ={
                "FREE2API_HOST": "0.0.0.0",
                "FREE2API_PORT": "8088",
                "FREE2API_API_KEY": "env-key",
            },
        )
        assert config.server.host == "0.0.0.0"
        assert config.server.port == 8088
        assert config.auth.api_master_key == "env-key"

    def test_origin_trailing_slash_trimmed(self):
        config = build_gateway_config(
            {"upstream": {"url": "https://u.example/api/generate", "origin": "https://u.example/"}},
            environ={},
        )
        assert config.upstream.origin == "https://u.example"

    def test_log_stream_chunks_flag(self):
        config = build_gateway_config({"logging": {"log_stream_chunks": "true"}}, environ={})
        assert config.stream.log_stream_chunks is True

    @pytest.mark.parametrize(
        "data",
        [
            {"server": {"port": "not-a-port"}},
            {"server": {"port": 70000}},
            {"server": "localhost"},
            {"upstream": {"url": "ftp://upstream/api"}},
            {"upstream": {"timeout": 0}},
            {"upstream": {"timeout": "soon"}},
            {"models": {"available": "free2gpt-general"}},
            {"models": {"available": []}},
            {"fingerprint": {"user_agents": []}},
            {"stream": {"channel_capacity": 0}},
            {"logging": {"level": "CHATTY"}},
        ],
    )
    def test_rejects_bad_values(self, data):
        with pytest.raises(ConfigurationError):
            build_gateway_config(data, environ={})
