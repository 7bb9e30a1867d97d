"""
Reaction stage — occasionally annotate a message with a custom emoji.

The gate runs in a fixed order and stops at the first failing check:

  1. the author is ignored here
  2. ``reacting`` is disabled for the channel
  3. in a guild, the bot may not add reactions to the channel
  4. the ``react_rate`` roll fails

When the gate passes, one emoji is picked uniformly from the available custom
emoji of the message's guild plus any configured global emoji guilds, and
the reaction is sent in the background. No candidates means no reaction.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Any

import structlog

from seeborg.chance import roll_chance
from seeborg.errors import InvariantViolation
from seeborg.pipeline import Stage

if TYPE_CHECKING:
    from seeborg.bot import SeeBorg

logger = structlog.get_logger(__name__)


class Reaction(Stage):
    """Decides whether to react to a message, and with what."""

    name = "reaction"

    def __init__(self, bot: "SeeBorg", rng: random.Random | None = None) -> None:
        super().__init__(bot)
        self._rng = rng or bot.rng

    def apply(self, message: Any) -> bool:
        """React if the gate passes. Returns True iff the gate passed."""
        if self.should_react(message):
            self.react(message)
            return True
        return False

    def should_react(self, message: Any) -> bool:
        channel = message.channel
        guild = message.guild
        channel_name = getattr(channel, "name", None)

        if self.bot.is_ignored(message.author, channel):
            logger.debug("reaction.skip", reason="user_ignored")
            return False

        if not self.bot.behavior("reacting", channel):
            logger.debug("reaction.skip", reason="reacting_disabled", channel=channel_name)
            return False

        if guild is not None:
            if not channel.permissions_for(guild.me).add_reactions:
                logger.debug("reaction.skip", reason="missing_permission", channel=channel_name)
                return False

        react_rate = self.bot.behavior("react_rate", channel)
        if react_rate is None:
            raise InvariantViolation(f"react_rate is not configured for channel {channel.id}")
        if roll_chance(react_rate, self._rng):
            logger.debug("reaction.rolled", react_rate=react_rate, channel=channel_name)
            return True

        logger.debug("reaction.skip", reason="roll_failed", react_rate=react_rate)
        return False

    def candidates(self, message: Any) -> list[Any]:
        """Available emoji from the message's guild and the global emoji guilds."""
        guild_ids: list[str] = []
        if message.guild is not None:
            guild_ids.append(str(message.guild.id))
        guild_ids.extend(self.bot.config.global_emoji)

        emoji: list[Any] = []
        for guild_id in dict.fromkeys(guild_ids):
            guild = self.bot.client.get_guild(int(guild_id))
            if guild is None:
                logger.warning("reaction.emoji_guild_missing", guild_id=guild_id)
                continue
            emoji.extend(e for e in guild.emojis if e.available)
        return emoji

    def react(self, message: Any) -> Any | None:
        """Pick an emoji and react with it in the background.

        Returns the emoji that was chosen, or None if there was nothing to
        choose from.
        """
        emoji = self.candidates(message)
        if not emoji:
            logger.debug("reaction.no_emoji", guild_id=getattr(message.guild, "id", None))
            return None

        choice = self._rng.choice(emoji)
        logger.debug("reaction.reacting", emoji=str(choice), message_id=message.id)
        self.bot.spawn(message.add_reaction(choice), name="reaction.add")
        return choice
