"""Typed configuration models used throughout the project."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class BotConfig(BaseModel):
    """Runtime behaviour toggles for the bot."""

    model_config = ConfigDict(frozen=True)

    client_id: Optional[int] = None
    shard_count: Optional[int] = None
    debug: bool = False
    debug_guild_id: Optional[int] = None
    register_commands_on_ready: bool = True
    presence_template: str = "serving {guilds} servers"

    @field_validator("shard_count")
    @classmethod
    def _positive_shard_count(cls, value: Optional[int]):
        """Reject shard counts that the gateway would refuse."""
        if value is not None and value < 1:
            raise ValueError("shard_count must be at least 1")
        return value


class TopGGConfig(BaseModel):
    """Optional server-count reporting to the top.gg bot list."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    base_url: str = "https://top.gg/api"
    token_env: str = "TOPGG_TOKEN"
    timeout_seconds: float = 10.0

    @field_validator("base_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: str):
        if isinstance(value, str):
            return value.strip().rstrip("/")
        return value


class WebServerConfig(BaseModel):
    """Configuration for the plain-text HTTP responder."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    host: str = "localhost"
    port: int = 8080
    body: str = "Hello from the web server!"


class LoggingConfig(BaseModel):
    """Log level applied to the process log sink."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"

    @field_validator("level", mode="before")
    @classmethod
    def _normalise_level(cls, value: str):
        if isinstance(value, str):
            return value.strip().upper()
        return value


class AppConfig(BaseModel):
    """Root configuration container loaded from ``config.yml`` and ``.env``."""

    model_config = ConfigDict(frozen=True)

    bot: BotConfig = BotConfig()
    topgg: TopGGConfig = TopGGConfig()
    web_server: WebServerConfig = WebServerConfig()
    logging: LoggingConfig = LoggingConfig()
