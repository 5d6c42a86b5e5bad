"""Tests for kdo_dado.config — environment parsing and credential lookup."""

from pathlib import Path

import pytest

from kdo_dado.config import ConfigError, Credential, find_credential, load_settings


class TestFindCredential:
    def test_auth_token_wins(self) -> None:
        env = {"ANTHROPIC_AUTH_TOKEN": "tok", "ANTHROPIC_API_KEY": "key"}
        assert find_credential(env) == Credential(kind="auth_token", value="tok")

    def test_api_key(self) -> None:
        assert find_credential({"ANTHROPIC_API_KEY": "key"}) == Credential(kind="api_key", value="key")

    def test_empty_values_ignored(self) -> None:
        assert find_credential({"ANTHROPIC_AUTH_TOKEN": "", "ANTHROPIC_API_KEY": ""}) is None

    def test_none(self) -> None:
        assert find_credential({}) is None


class TestLoadSettings:
    def test_defaults(self) -> None:
        settings = load_settings(env={})
        assert settings.transport == "sdk"
        assert settings.model == "claude-sonnet-4-5"
        assert settings.output_dir == Path("output")
        assert settings.generation.max_iterations == 3
        assert settings.generation.batch_size == 10
        assert settings.credential is None

    def test_overrides(self) -> None:
        settings = load_settings(env={
            "KDO_TRANSPORT": "http",
            "KDO_MODEL": "claude-haiku-4-5",
            "KDO_MAX_ITERATIONS": "0",
            "KDO_BATCH_SIZE": "2",
            "KDO_OUTPUT_DIR": "/tmp/scenarios",
            "ANTHROPIC_BASE_URL": "http://localhost:8080",
            "ANTHROPIC_API_KEY": "key",
        })
        assert settings.transport == "http"
        assert settings.model == "claude-haiku-4-5"
        assert settings.generation.max_iterations == 0
        assert settings.generation.batch_size == 2
        assert settings.output_dir == Path("/tmp/scenarios")
        assert settings.base_url == "http://localhost:8080"
        assert settings.credential.kind == "api_key"

    @pytest.mark.parametrize("env", [
        {"KDO_TRANSPORT": "carrier-pigeon"},
        {"KDO_MAX_ITERATIONS": "-1"},
        {"KDO_MAX_ITERATIONS": "three"},
        {"KDO_BATCH_SIZE": "0"},
    ])
    def test_invalid_values(self, env: dict) -> None:
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_settings(env=env)

    def test_reads_dotenv(self, tmp_path, monkeypatch) -> None:
        for name in ("KDO_BATCH_SIZE", "ANTHROPIC_AUTH_TOKEN", "ANTHROPIC_API_KEY"):
            monkeypatch.delenv(name, raising=False)
        dotenv = tmp_path / ".env"
        dotenv.write_text("KDO_BATCH_SIZE=4\nANTHROPIC_AUTH_TOKEN=from-file\n")
        try:
            settings = load_settings(dotenv_path=dotenv)
        finally:
            monkeypatch.delenv("KDO_BATCH_SIZE", raising=False)
            monkeypatch.delenv("ANTHROPIC_AUTH_TOKEN", raising=False)
        assert settings.generation.batch_size == 4
        assert settings.credential == Credential(kind="auth_token", value="from-file")
