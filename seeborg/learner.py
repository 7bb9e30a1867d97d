"""Learner stage — feed guild messages into that guild's database."""

from __future__ import annotations

from typing import Any

import structlog

from seeborg.pipeline import Stage

logger = structlog.get_logger(__name__)


class Learner(Stage):
    name = "learner"

    def apply(self, message: Any) -> bool:
        channel = message.channel
        if self.bot.is_ignored(message.author, channel):
            return False
        if not self.bot.behavior("learning", channel):
            return False

        content = message.content or ""
        if not content.strip() or content.startswith(self.bot.config.command_prefix):
            return False

        database = self.bot.database_for(message.guild)
        if database is None:
            return False

        added = database.learn(content)
        if added:
            logger.debug("learner.learned", guild_id=message.guild.id, lines=added)
        return added > 0
