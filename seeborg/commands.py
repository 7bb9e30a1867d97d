"""
Command handler — the first pipeline stage.

Text commands look like ``<prefix><name> [args]``:

  help          — list commands
  version       — report the running version
  words         — line and word counts for this guild
  known <word>  — how many learned lines contain a word
  save          — save every guild database (owners only)

A message counts as handled only when it names a recognised command and its
author is not ignored; the reply itself is sent in the background.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

import discord
import structlog

from seeborg import __version__
from seeborg.pipeline import Stage

if TYPE_CHECKING:
    from seeborg.bot import SeeBorg

logger = structlog.get_logger(__name__)

CommandFunc = Callable[[Any, list[str]], str]


class CommandHandler(Stage):
    name = "commands"

    def __init__(self, bot: "SeeBorg") -> None:
        super().__init__(bot)
        self._commands: dict[str, tuple[CommandFunc, str]] = {}

    def setup(self) -> None:
        self._commands = {
            "help": (self._cmd_help, "list commands"),
            "version": (self._cmd_version, "show the running version"),
            "words": (self._cmd_words, "show what I know in this server"),
            "known": (self._cmd_known, "`known <word>`: how often I've seen a word"),
            "save": (self._cmd_save, "save all databases (owners only)"),
        }

    def teardown(self) -> None:
        self._commands = {}

    @property
    def command_names(self) -> list[str]:
        return list(self._commands)

    def handle(self, message: Any) -> bool:
        prefix = self.bot.config.command_prefix
        content = (message.content or "").strip()
        if not content.startswith(prefix):
            return False
        parts = content[len(prefix):].split()
        if not parts:
            return False
        entry = self._commands.get(parts[0].lower())
        if entry is None:
            return False
        if self.bot.is_ignored(message.author, message.channel):
            return False

        func, _ = entry
        reply = func(message, parts[1:])
        logger.info("commands.handled", command=parts[0].lower(), user_id=message.author.id)
        self.bot.spawn(
            message.channel.send(reply, allowed_mentions=discord.AllowedMentions.none()),
            name="commands.reply",
        )
        return True

    apply = handle

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _cmd_help(self, message: Any, args: list[str]) -> str:
        prefix = self.bot.config.command_prefix
        lines = ["**SeeBorg Commands**"]
        for name, (_, description) in self._commands.items():
            lines.append(f"{prefix}{name} — {description}")
        return "\n".join(lines)

    def _cmd_version(self, message: Any, args: list[str]) -> str:
        return f"SeeBorg {__version__}"

    def _cmd_words(self, message: Any, args: list[str]) -> str:
        database = self.bot.database_for(message.guild)
        if database is None:
            return "I only learn in servers."
        return f"I know {database.word_count} words in {database.line_count} lines."

    def _cmd_known(self, message: Any, args: list[str]) -> str:
        if not args:
            return f"Usage: {self.bot.config.command_prefix}known <word>"
        database = self.bot.database_for(message.guild)
        if database is None:
            return "I only learn in servers."
        word = args[0]
        count = database.known(word)
        if not count:
            return f"I don't know \"{word}\"."
        return f"\"{word}\" is known ({count} contexts)."

    def _cmd_save(self, message: Any, args: list[str]) -> str:
        if not self.bot.config.is_owner(message.author.id):
            return "Only owners can do that."
        failed = self.bot.save_all()
        if failed:
            return f"Saved, but {len(failed)} database(s) failed."
        return "Saved."
