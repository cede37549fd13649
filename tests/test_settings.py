"""
Tests for the configuration loader (unobot/configs/settings.py).
"""

import pytest

from unobot.configs import settings
from unobot.configs.settings import load_config, require_env
from unobot.utils.exceptions import ConfigurationError

OVERRIDE_VARS = (
    "CONFIG_PATH",
    "DISCORD_SHARD_COUNT",
    "BOT_DEBUG",
    "DEBUG_GUILD_ID",
    "BOT_CLIENT_ID",
    "TOPGG_ENABLED",
    "WEB_SERVER_ENABLED",
    "WEB_SERVER_HOST",
    "WEB_SERVER_PORT",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.setattr(settings, "load_environment", lambda: None)
    for name in OVERRIDE_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(
        "bot:\n"
        "  client_id: 123\n"
        "  shard_count: 2\n"
        "web_server:\n"
        "  port: 9090\n",
        encoding="utf-8",
    )
    return path


# ─── load_config ──────────────────────────────────────────────────────────────

class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        cfg = load_config(str(tmp_path / "absent.yml"))
        assert cfg.bot.shard_count is None
        assert cfg.web_server.port == 8080

    def test_reads_yaml(self, config_file):
        cfg = load_config(str(config_file))
        assert cfg.bot.client_id == 123
        assert cfg.bot.shard_count == 2
        assert cfg.web_server.port == 9090

    def test_config_path_env(self, config_file, monkeypatch):
        monkeypatch.setenv("CONFIG_PATH", str(config_file))
        assert load_config().bot.client_id == 123

    def test_blank_file_gives_defaults(self, tmp_path):
        path = tmp_path / "blank.yml"
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)).bot.debug is False

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_env_overrides_yaml(self, config_file, monkeypatch):
        monkeypatch.setenv("DISCORD_SHARD_COUNT", "8")
        monkeypatch.setenv("WEB_SERVER_PORT", "7000")
        monkeypatch.setenv("WEB_SERVER_HOST", "0.0.0.0")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        cfg = load_config(str(config_file))
        assert cfg.bot.shard_count == 8
        assert cfg.web_server.port == 7000
        assert cfg.web_server.host == "0.0.0.0"
        assert cfg.logging.level == "DEBUG"

    def test_debug_override(self, config_file, monkeypatch):
        monkeypatch.setenv("BOT_DEBUG", "true")
        monkeypatch.setenv("DEBUG_GUILD_ID", "555")
        cfg = load_config(str(config_file))
        assert cfg.bot.debug is True
        assert cfg.bot.debug_guild_id == 555

    def test_debug_without_guild_rejected(self, config_file, monkeypatch):
        monkeypatch.setenv("BOT_DEBUG", "1")
        with pytest.raises(ConfigurationError):
            load_config(str(config_file))

    def test_topgg_without_client_id_rejected(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TOPGG_ENABLED", "true")
        with pytest.raises(ConfigurationError):
            load_config(str(tmp_path / "absent.yml"))

    def test_invalid_integer_override(self, config_file, monkeypatch):
        monkeypatch.setenv("WEB_SERVER_PORT", "eighty")
        with pytest.raises(ConfigurationError):
            load_config(str(config_file))

    def test_invalid_value_rejected(self, config_file, monkeypatch):
        monkeypatch.setenv("DISCORD_SHARD_COUNT", "0")
        with pytest.raises(ConfigurationError):
            load_config(str(config_file))


# ─── require_env ──────────────────────────────────────────────────────────────

class TestRequireEnv:
    def test_returns_value(self, monkeypatch):
        monkeypatch.setenv("DISCORD_TOKEN", "  abc  ")
        assert require_env() == "abc"

    def test_missing_token_is_fatal(self, monkeypatch):
        monkeypatch.delenv("DISCORD_TOKEN", raising=False)
        with pytest.raises(ConfigurationError):
            require_env()

    def test_blank_token_is_fatal(self, monkeypatch):
        monkeypatch.setenv("DISCORD_TOKEN", "   ")
        with pytest.raises(ConfigurationError):
            require_env("DISCORD_TOKEN")
