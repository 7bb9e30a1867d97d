"""
Builders for the SeeBorg test suite.

Discord objects are MagicMocks shaped like the discord.py models the code
touches; no network access and no real client are involved.
"""

from __future__ import annotations

import random
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from seeborg.config import Behavior, SeeBorgConfig

BOT_USER_ID = 999
GUILD_ID = 100
CHANNEL_ID = 500
AUTHOR_ID = 42


class FixedRandom(random.Random):
    """A Random whose ``random()`` always returns *value*."""

    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


def make_emoji(name: str = "pog", available: bool = True) -> MagicMock:
    emoji = MagicMock(name=f"emoji:{name}")
    emoji.name = name
    emoji.available = available
    return emoji


def make_guild(guild_id: int = GUILD_ID, name: str = "Test Guild", emojis=None) -> MagicMock:
    guild = MagicMock(name=f"guild:{guild_id}")
    guild.id = guild_id
    guild.name = name
    guild.emojis = list(emojis or [])
    guild.me = MagicMock(name="me")
    return guild


def make_client(guilds=None) -> MagicMock:
    client = MagicMock(name="client")
    client.user = MagicMock(name="bot_user")
    client.user.id = BOT_USER_ID
    client.user.name = "seeborg"
    client.guilds = list(guilds or [])
    client.get_guild.side_effect = lambda gid: {g.id: g for g in client.guilds}.get(gid)
    client.start = AsyncMock()
    client.close = AsyncMock()
    client.change_presence = AsyncMock()
    return client


def make_message(
    content: str = "hello there",
    *,
    guild=None,
    author_id: int = AUTHOR_ID,
    channel_id: int = CHANNEL_ID,
    add_reactions: bool = True,
    send_messages: bool = True,
    mentions=None,
) -> MagicMock:
    msg = MagicMock(name="message")
    msg.id = 7
    msg.content = content
    msg.author = MagicMock(name="author")
    msg.author.id = author_id
    msg.mentions = list(mentions or [])
    msg.guild = guild
    msg.channel = MagicMock(name="channel")
    msg.channel.id = channel_id
    msg.channel.name = "general"
    msg.channel.guild = guild
    perms = MagicMock(name="permissions")
    perms.add_reactions = add_reactions
    perms.send_messages = send_messages
    msg.channel.permissions_for.return_value = perms
    msg.channel.send = AsyncMock()
    msg.add_reaction = AsyncMock()
    return msg


def make_config(tmp_path: Path, **kwargs) -> SeeBorgConfig:
    behavior = kwargs.pop("behavior", None) or Behavior()
    return SeeBorgConfig(database_path=tmp_path / "db", behavior=behavior, **kwargs)
