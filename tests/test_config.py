"""Tests for API client configuration loading."""

from pathlib import Path

import pytest

from authclient.config import (
    DEFAULT_API_BASE_URL,
    ClientConfig,
    _deep_merge,
    _expand_env_vars,
    load_config,
    load_yaml,
)

ENV_VARS = (
    "AUTHCLIENT_API_BASE_URL",
    "AUTHCLIENT_API_TIMEOUT_SECONDS",
    "AUTHCLIENT_TOKEN_FILE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    def _write(content: str) -> Path:
        path = tmp_path / "config.yaml"
        path.write_text(content)
        return path

    return _write


class TestExpandEnvVars:

    def test_expands_set_variable(self, monkeypatch):
        monkeypatch.setenv("API_HOST", "api.example.com")
        assert _expand_env_vars("https://${API_HOST}/v1") == "https://api.example.com/v1"

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("MISSING_VAR", raising=False)
        assert _expand_env_vars("${MISSING_VAR:-fallback}") == "fallback"

    def test_unset_without_default_left_as_is(self, monkeypatch):
        monkeypatch.delenv("MISSING_VAR", raising=False)
        assert _expand_env_vars("${MISSING_VAR}") == "${MISSING_VAR}"

    def test_nested_structures(self, monkeypatch):
        monkeypatch.setenv("X", "1")
        assert _expand_env_vars({"a": ["${X}", {"b": "${X}"}], "c": 2}) == {
            "a": ["1", {"b": "1"}],
            "c": 2,
        }


class TestDeepMerge:

    def test_nested_merge(self):
        base = {"retry": {"max_retries": 2, "base_delay": 1.0}, "base_url": "a"}
        overlay = {"retry": {"max_retries": 5}}
        assert _deep_merge(base, overlay) == {
            "retry": {"max_retries": 5, "base_delay": 1.0},
            "base_url": "a",
        }

    def test_base_not_mutated(self):
        base = {"a": 1}
        _deep_merge(base, {"a": 2})
        assert base == {"a": 1}


class TestClientConfig:

    def test_defaults(self):
        config = ClientConfig()
        assert config.api_base_url == DEFAULT_API_BASE_URL
        assert config.api_timeout_seconds == 30.0
        assert config.token_refresh_buffer_seconds == 300
        assert config.token_storage_key == "auth_tokens"
        assert config.token_file is None
        assert config.refresh_path == "/auth/token/refresh/"
        assert config.max_retries == 2
        assert config.retry_base_delay == 1.0
        assert config.max_concurrent == 20

    def test_coerces_strings(self):
        config = ClientConfig(api_timeout_seconds="10", max_retries="4", retry_base_delay="0.5")
        assert config.api_timeout_seconds == 10.0
        assert config.max_retries == 4
        assert config.retry_base_delay == 0.5

    def test_strips_trailing_slash(self):
        assert ClientConfig(api_base_url="https://x.test/api/").api_base_url == "https://x.test/api"

    def test_empty_token_file_is_none(self):
        assert ClientConfig(token_file="").token_file is None

    def test_validate_accepts_defaults(self):
        ClientConfig().validate()

    def test_validate_reports_every_problem(self):
        config = ClientConfig(api_base_url="ftp://x", api_timeout_seconds=0, max_retries=-1)
        with pytest.raises(ValueError) as exc_info:
            config.validate()

        message = str(exc_info.value)
        assert "api_base_url" in message
        assert "api_timeout_seconds" in message
        assert "max_retries" in message


class TestLoadConfig:

    def test_without_file_uses_defaults(self):
        assert load_config() == ClientConfig()

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_load_yaml_missing_returns_empty(self, tmp_path):
        assert load_yaml(tmp_path / "nope.yaml") == {}

    def test_reads_api_client_section(self, config_file, tmp_path):
        path = config_file(
            f"""
api_client:
  base_url: https://api.example.com/v2
  timeout_seconds: 12
  max_concurrent: 4
  token_storage_key: session
  token_file: {tmp_path / "tokens.json"}
  token_refresh_buffer_seconds: 60
  refresh_path: /token/refresh/
  retry:
    max_retries: 3
    base_delay: 0.5
"""
        )

        config = load_config(path)

        assert config.api_base_url == "https://api.example.com/v2"
        assert config.api_timeout_seconds == 12.0
        assert config.max_concurrent == 4
        assert config.token_storage_key == "session"
        assert config.token_file == str(tmp_path / "tokens.json")
        assert config.token_refresh_buffer_seconds == 60
        assert config.refresh_path == "/token/refresh/"
        assert config.max_retries == 3
        assert config.retry_base_delay == 0.5

    def test_env_var_expansion_in_yaml(self, config_file, monkeypatch):
        monkeypatch.setenv("API_BASE_URL", "https://from-env.test/api")
        path = config_file("api_client:\n  base_url: ${API_BASE_URL:-http://unused}\n")
        assert load_config(path).api_base_url == "https://from-env.test/api"

    def test_yaml_default_when_env_unset(self, config_file, monkeypatch):
        monkeypatch.delenv("API_BASE_URL", raising=False)
        path = config_file("api_client:\n  base_url: ${API_BASE_URL:-https://default.test}\n")
        assert load_config(path).api_base_url == "https://default.test"

    def test_overrides_merge_over_file(self, config_file):
        path = config_file("api_client:\n  timeout_seconds: 12\n  retry:\n    max_retries: 3\n")
        config = load_config(path, overrides={"retry": {"base_delay": 2}})
        assert config.api_timeout_seconds == 12.0
        assert config.max_retries == 3
        assert config.retry_base_delay == 2.0

    def test_environment_overrides_win(self, config_file, monkeypatch):
        path = config_file("api_client:\n  base_url: https://file.test\n  timeout_seconds: 12\n")
        monkeypatch.setenv("AUTHCLIENT_API_BASE_URL", "https://env.test")
        monkeypatch.setenv("AUTHCLIENT_API_TIMEOUT_SECONDS", "7")

        config = load_config(path, overrides={"base_url": "https://override.test"})

        assert config.api_base_url == "https://env.test"
        assert config.api_timeout_seconds == 7.0

    def test_token_file_env_expands_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("AUTHCLIENT_TOKEN_FILE", "~/tokens.json")
        assert load_config().token_file == str(tmp_path / "tokens.json")

    def test_invalid_values_rejected(self, config_file):
        path = config_file("api_client:\n  base_url: not-a-url\n")
        with pytest.raises(ValueError, match="api_base_url"):
            load_config(path)

    def test_empty_file(self, config_file):
        assert load_config(config_file("")) == ClientConfig()
