"""
Tests for configuration schema validation (unobot/configs/schema.py).
Ensures default values, field validators and AppConfig parsing are correct.
"""

import pytest
from pydantic import ValidationError

from unobot.configs.schema import (
    AppConfig,
    BotConfig,
    LoggingConfig,
    TopGGConfig,
    WebServerConfig,
)


# ─── BotConfig ────────────────────────────────────────────────────────────────

class TestBotConfig:
    def test_defaults(self):
        cfg = BotConfig()
        assert cfg.shard_count is None
        assert cfg.debug is False
        assert cfg.debug_guild_id is None
        assert cfg.register_commands_on_ready is True

    def test_presence_template_default(self):
        assert BotConfig().presence_template.format(guilds=3) == "serving 3 servers"

    def test_rejects_zero_shards(self):
        with pytest.raises(ValidationError):
            BotConfig(shard_count=0)

    def test_is_frozen(self):
        cfg = BotConfig()
        with pytest.raises(ValidationError):
            cfg.debug = True


# ─── TopGGConfig ──────────────────────────────────────────────────────────────

class TestTopGGConfig:
    def test_default_disabled(self):
        assert TopGGConfig().enabled is False

    def test_base_url_trailing_slash_stripped(self):
        cfg = TopGGConfig(base_url=" https://top.gg/api/ ")
        assert cfg.base_url == "https://top.gg/api"

    def test_default_token_env(self):
        assert TopGGConfig().token_env == "TOPGG_TOKEN"


# ─── WebServerConfig ──────────────────────────────────────────────────────────

class TestWebServerConfig:
    def test_defaults(self):
        cfg = WebServerConfig()
        assert cfg.enabled is True
        assert cfg.host == "localhost"
        assert cfg.port == 8080
        assert cfg.body == "Hello from the web server!"


# ─── LoggingConfig ────────────────────────────────────────────────────────────

class TestLoggingConfig:
    def test_level_normalised(self):
        assert LoggingConfig(level=" debug ").level == "DEBUG"


# ─── AppConfig ────────────────────────────────────────────────────────────────

class TestAppConfig:
    def test_empty_dict_uses_defaults(self):
        cfg = AppConfig(**{})
        assert cfg.web_server.port == 8080
        assert cfg.topgg.enabled is False

    def test_nested_parsing(self):
        cfg = AppConfig(
            bot={"shard_count": 4, "debug": True, "debug_guild_id": 99},
            web_server={"port": 9000},
        )
        assert cfg.bot.shard_count == 4
        assert cfg.bot.debug_guild_id == 99
        assert cfg.web_server.port == 9000
