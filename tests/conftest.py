"""Pytest configuration helpers."""

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
TESTS = Path(__file__).resolve().parent

for path in (ROOT, TESTS):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

# Ensure config bootstrap has the secrets it needs during CI/unit tests.
os.environ.setdefault("DISCORD_TOKEN", "TEST_TOKEN")

from unobot.configs.schema import AppConfig, BotConfig  # noqa: E402
from unobot.services.command_router import CommandRouter  # noqa: E402
from unobot.services.context import ServiceContainer  # noqa: E402
from unobot.services.game_manager import GameManager  # noqa: E402
from unobot.services.status_service import StatusAggregator  # noqa: E402

from fakes import FakeClient  # noqa: E402


@pytest.fixture
def client():
    return FakeClient(shard_count=2)


@pytest.fixture
def config():
    return AppConfig(bot=BotConfig(client_id=4242, shard_count=2))


@pytest.fixture
def services(client, config):
    return ServiceContainer(
        config=config,
        client=client,
        status=StatusAggregator(client, config.bot),
        games=GameManager(),
    )


@pytest.fixture
def router(services):
    return CommandRouter(services)
