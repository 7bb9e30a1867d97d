"""
Answerer stage — sometimes reply with a learned line.

The reply is chosen by picking a random word of the incoming message that
the guild's database knows, then a random learned line containing it. A
mention of the bot (or its name in the text) rolls ``reply_nick`` instead of
``reply_rate``.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Any

import discord
import structlog

from seeborg.chance import roll_chance
from seeborg.database import split_words
from seeborg.pipeline import Stage

if TYPE_CHECKING:
    from seeborg.bot import SeeBorg

logger = structlog.get_logger(__name__)


class Answerer(Stage):
    name = "answerer"

    def __init__(self, bot: "SeeBorg", rng: random.Random | None = None) -> None:
        super().__init__(bot)
        self._rng = rng or bot.rng

    def apply(self, message: Any) -> bool:
        if not self.should_reply(message):
            return False
        reply = self.compose(message)
        if reply is None:
            return False
        no_mentions = discord.AllowedMentions.none()
        self.bot.spawn(
            message.channel.send(reply, allowed_mentions=no_mentions),
            name="answerer.send",
        )
        return True

    def _mentions_bot(self, message: Any) -> bool:
        me = self.bot.client.user
        if me is None:
            return False
        if me in (message.mentions or []):
            return True
        name = (getattr(me, "name", "") or "").lower()
        return bool(name) and name in split_words(message.content or "")

    def should_reply(self, message: Any) -> bool:
        channel = message.channel
        if self.bot.is_ignored(message.author, channel):
            return False
        if not self.bot.behavior("speaking", channel):
            return False
        if message.guild is not None:
            if not channel.permissions_for(message.guild.me).send_messages:
                logger.debug("answerer.skip", reason="missing_permission")
                return False

        key = "reply_nick" if self._mentions_bot(message) else "reply_rate"
        return roll_chance(self.bot.behavior(key, channel), self._rng)

    def compose(self, message: Any) -> str | None:
        """Return a learned line related to *message*, or None."""
        database = self.bot.database_for(message.guild)
        if database is None:
            return None
        known = [w for w in dict.fromkeys(split_words(message.content or "")) if database.known(w)]
        if not known:
            return None
        word = self._rng.choice(known)
        return self._rng.choice(database.lines_with(word))
