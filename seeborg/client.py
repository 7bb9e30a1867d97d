"""
discord.py client construction.

The session owns a plain ``discord.Client`` and binds its own coroutines as
event handlers with ``client.event``; nothing here knows about the pipeline.
"""

from __future__ import annotations

import discord

_ACTIVITY_TYPES = {
    "playing": discord.ActivityType.playing,
    "listening": discord.ActivityType.listening,
    "watching": discord.ActivityType.watching,
    "competing": discord.ActivityType.competing,
}


def create_client(**kwargs) -> discord.Client:
    """Build a client with the intents SeeBorg needs."""
    # SeeBorg does not use voice; silence the PyNaCl warning.
    try:
        discord.VoiceClient.warn_nacl = False
    except AttributeError:
        pass

    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.emojis_and_stickers = True
    return discord.Client(intents=intents, **kwargs)


def build_activity(text: str, kind: str = "playing") -> discord.Activity:
    """Map a configured activity string onto a ``discord.Activity``."""
    return discord.Activity(type=_ACTIVITY_TYPES.get(kind, discord.ActivityType.playing), name=text)
