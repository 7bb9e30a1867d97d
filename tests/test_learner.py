"""Tests for seeborg.learner."""

from __future__ import annotations

from helpers import AUTHOR_ID, BOT_USER_ID, CHANNEL_ID, make_client, make_config, make_message
from seeborg.bot import SeeBorg
from seeborg.config import Behavior, BehaviorOverride


def _bot(tmp_path, registry, guild, **config_kwargs) -> SeeBorg:
    bot = SeeBorg(make_client([guild]), make_config(tmp_path, **config_kwargs), registry=registry)
    bot.load_database(guild)
    return bot


class TestLearner:
    def test_learns_guild_message(self, tmp_path, registry, guild):
        bot = _bot(tmp_path, registry, guild)
        assert bot.learner.apply(make_message("penguins waddle", guild=guild)) is True
        assert bot.database[guild.id].known("penguins") == 1

    def test_repeat_is_not_new(self, tmp_path, registry, guild):
        bot = _bot(tmp_path, registry, guild)
        bot.learner.apply(make_message("penguins waddle", guild=guild))
        assert bot.learner.apply(make_message("penguins waddle", guild=guild)) is False

    def test_own_message_not_learned(self, tmp_path, registry, guild):
        bot = _bot(tmp_path, registry, guild)
        assert bot.learner.apply(make_message("me me me", guild=guild, author_id=BOT_USER_ID)) is False
        assert bot.database[guild.id].line_count == 0

    def test_ignored_user_not_learned(self, tmp_path, registry, guild):
        bot = _bot(tmp_path, registry, guild, ignored_users=[AUTHOR_ID])
        assert bot.learner.apply(make_message("hello", guild=guild)) is False

    def test_learning_disabled_in_channel(self, tmp_path, registry, guild):
        bot = _bot(
            tmp_path,
            registry,
            guild,
            channels={str(CHANNEL_ID): BehaviorOverride(learning=False)},
        )
        assert bot.learner.apply(make_message("hello", guild=guild)) is False
        assert bot.learner.apply(make_message("hello", guild=guild, channel_id=CHANNEL_ID + 1)) is True

    def test_learning_disabled_globally(self, tmp_path, registry, guild):
        bot = _bot(tmp_path, registry, guild, behavior=Behavior(learning=False))
        assert bot.learner.apply(make_message("hello", guild=guild)) is False

    def test_commands_not_learned(self, tmp_path, registry, guild):
        bot = _bot(tmp_path, registry, guild)
        assert bot.learner.apply(make_message("!unknowncommand here", guild=guild)) is False

    def test_direct_messages_not_learned(self, tmp_path, registry, guild):
        bot = _bot(tmp_path, registry, guild)
        assert bot.learner.apply(make_message("private words", guild=None)) is False

    def test_unloaded_guild_not_learned(self, tmp_path, registry, guild):
        bot = SeeBorg(make_client([guild]), make_config(tmp_path), registry=registry)
        assert bot.learner.apply(make_message("hello", guild=guild)) is False
