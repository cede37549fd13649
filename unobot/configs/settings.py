"""Configuration loader for UnoBot.

Settings come from ``config.yml`` (path overridable through ``CONFIG_PATH``) and
are then overridden by environment variables, optionally read from a ``.env``
file.  Nothing is loaded at import time; the lifecycle calls :func:`load_config`
once during startup and passes the resulting frozen :class:`AppConfig` around.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

from unobot.utils.exceptions import ConfigurationError

from .schema import AppConfig

_base_dir = Path(__file__).resolve().parents[2]
_env_files = [".env.local", ".env.production", ".env"]

TOKEN_ENV = "DISCORD_TOKEN"


def load_environment() -> None:
    """Load the first ``.env`` file found, without overriding exported variables."""
    for candidate in _env_files:
        path = _base_dir / candidate
        if path.exists():
            load_dotenv(path)
            return
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path)


def _load_yaml(path: str) -> Dict[str, Any]:
    """Load a YAML config file, returning an empty dict if it is blank or absent."""
    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping at the top level")
    return data


def _env_bool(name: str) -> Optional[bool]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc


def _apply_overrides(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Merge environment overrides into the raw YAML mapping."""
    sections = {key: dict(raw.get(key) or {}) for key in ("bot", "topgg", "web_server", "logging")}

    overrides = {
        ("bot", "shard_count"): _env_int("DISCORD_SHARD_COUNT"),
        ("bot", "debug"): _env_bool("BOT_DEBUG"),
        ("bot", "debug_guild_id"): _env_int("DEBUG_GUILD_ID"),
        ("bot", "client_id"): _env_int("BOT_CLIENT_ID"),
        ("topgg", "enabled"): _env_bool("TOPGG_ENABLED"),
        ("web_server", "enabled"): _env_bool("WEB_SERVER_ENABLED"),
        ("web_server", "host"): os.getenv("WEB_SERVER_HOST") or None,
        ("web_server", "port"): _env_int("WEB_SERVER_PORT"),
        ("logging", "level"): os.getenv("LOG_LEVEL") or None,
    }
    for (section, key), value in overrides.items():
        if value is not None:
            sections[section][key] = value

    merged = dict(raw)
    merged.update(sections)
    return merged


def load_config(path: Optional[str] = None) -> AppConfig:
    """Build the process-wide configuration.

    Raises :class:`ConfigurationError` when the file or an override is invalid,
    including debug mode without a debug guild to register commands against.
    """
    load_environment()
    raw = _load_yaml(path or os.getenv("CONFIG_PATH", "config.yml"))
    try:
        config = AppConfig(**_apply_overrides(raw))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    if config.bot.debug and config.bot.debug_guild_id is None:
        raise ConfigurationError("bot.debug requires bot.debug_guild_id (or DEBUG_GUILD_ID)")
    if config.topgg.enabled and config.bot.client_id is None:
        raise ConfigurationError("topgg.enabled requires bot.client_id (or BOT_CLIENT_ID)")
    return config


def require_env(name: str = TOKEN_ENV) -> str:
    """Return a required secret from the environment or fail fast."""
    value = (os.getenv(name) or "").strip()
    if not value:
        raise ConfigurationError(f"{name} missing in environment or .env")
    return value
