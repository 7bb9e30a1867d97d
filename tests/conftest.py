"""
Shared fixtures for the SeeBorg test suite.

Builders live in ``helpers.py``; these fixtures wire them into a session
backed by a temp directory and an isolated registry.
"""

from __future__ import annotations

import random
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from helpers import make_client, make_config, make_emoji, make_guild
from seeborg.bot import SeeBorg
from seeborg.config import Behavior, SeeBorgConfig
from seeborg.registry import InstanceRegistry


@pytest.fixture()
def registry() -> InstanceRegistry:
    """An isolated registry so tests never touch the process-wide one."""
    return InstanceRegistry()


@pytest.fixture()
def guild() -> MagicMock:
    return make_guild(emojis=[make_emoji("pog")])


@pytest.fixture()
def client(guild) -> MagicMock:
    return make_client([guild])


@pytest.fixture()
def config(tmp_path: Path) -> SeeBorgConfig:
    return make_config(tmp_path, behavior=Behavior(reacting=True, react_rate=100))


@pytest.fixture()
def bot(client, config, registry) -> SeeBorg:
    return SeeBorg(client, config, registry=registry, rng=random.Random(1234))
