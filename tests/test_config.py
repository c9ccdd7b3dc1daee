"""
Parallax Discord Bot - Configuration Tests
==========================================

Environment parsing and validation.
"""

from pathlib import Path

import pytest

from parallax.core.config import Config, ConfigValidationError, load_config


ENV_VARS = (
    "DISCORD_TOKEN",
    "OWNER_ID",
    "DATABASE_PATH",
    "TELEMETRY_WEBHOOK_URL",
    "HEALTH_ENABLED",
    "HEALTH_HOST",
    "HEALTH_PORT",
    "QUEUE_DELAY_MS",
    "COMMAND_GC",
)


@pytest.fixture
def env(monkeypatch):
    """Clean environment with only a token set."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DISCORD_TOKEN", "token")
    return monkeypatch


class TestLoadConfig:
    """Tests for load_config()."""

    def test_missing_token_fails(self, env):
        env.delenv("DISCORD_TOKEN")

        with pytest.raises(ConfigValidationError, match="DISCORD_TOKEN"):
            load_config()

    def test_defaults(self, env):
        config = load_config()

        assert config == Config(discord_token="token")
        assert config.database_path == Path("data") / "parallax.db"
        assert config.command_gc is True

    def test_values_from_environment(self, env):
        env.setenv("OWNER_ID", "42")
        env.setenv("DATABASE_PATH", "/tmp/p.db")
        env.setenv("TELEMETRY_WEBHOOK_URL", "https://discord.com/api/webhooks/1/x")
        env.setenv("HEALTH_ENABLED", "no")
        env.setenv("HEALTH_PORT", "9000")
        env.setenv("QUEUE_DELAY_MS", "250")
        env.setenv("COMMAND_GC", "false")

        config = load_config()

        assert config.owner_id == 42
        assert config.database_path == Path("/tmp/p.db")
        assert config.telemetry_webhook_url == "https://discord.com/api/webhooks/1/x"
        assert config.health_enabled is False
        assert config.health_port == 9000
        assert config.queue_delay == 0.25
        assert config.command_gc is False

    def test_invalid_values_fall_back(self, env):
        env.setenv("OWNER_ID", "not-a-number")
        env.setenv("TELEMETRY_WEBHOOK_URL", "ftp://nope")
        env.setenv("HEALTH_PORT", "abc")

        config = load_config()

        assert config.owner_id is None
        assert config.telemetry_webhook_url is None
        assert config.health_port == 8080

    def test_port_is_clamped(self, env):
        env.setenv("HEALTH_PORT", "70000")
        assert load_config().health_port == 65535
