"""
SeeBorg — one running bot session.

A session owns one discord.py client, one database per guild, the message
pipeline, and an autosave task. Its lifecycle is one-way:

    created ──start()──▶ started ──destroy()──▶ destroyed

Event handlers are coroutines only because discord.py requires it; their
bodies never await. Network calls (login, presence, replies, reactions) run
as background tasks via :meth:`SeeBorg.spawn`, so each handler runs to
completion before the next event of this session is looked at, and the
per-guild database map needs no locking.
"""

from __future__ import annotations

import asyncio
import enum
import random
from typing import Any, Coroutine, Optional

import discord
import structlog

from seeborg.answerer import Answerer
from seeborg.client import build_activity
from seeborg.commands import CommandHandler
from seeborg.config import SeeBorgConfig
from seeborg.database import Database, database_paths, write_identity_file
from seeborg.errors import DatabaseError, InvariantViolation
from seeborg.learner import Learner
from seeborg.pipeline import MessagePipeline
from seeborg.reaction import Reaction
from seeborg.registry import InstanceRegistry, default_registry

logger = structlog.get_logger(__name__)


class SessionState(str, enum.Enum):
    CREATED = "created"
    STARTED = "started"
    DESTROYED = "destroyed"


class SeeBorg:
    """Session orchestrator: lifecycle, guild databases, and event routing."""

    EVENTS = ("on_ready", "on_message", "on_guild_join")

    def __init__(
        self,
        client: Any,
        config: SeeBorgConfig,
        *,
        registry: InstanceRegistry | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.client = client
        self.config = config
        self.registry = registry if registry is not None else default_registry
        self.rng = rng or random.Random()
        self.database: dict[int, Database] = {}
        self.state = SessionState.CREATED

        self.command_handler = CommandHandler(self)
        self.answerer = Answerer(self)
        self.learner = Learner(self)
        self.reaction = Reaction(self)
        self.pipeline = MessagePipeline(
            self.command_handler, [self.answerer, self.learner, self.reaction]
        )

        self._autosave_task: Optional[asyncio.Task] = None
        self._login_task: Optional[asyncio.Task] = None
        self._background: set[asyncio.Task] = set()

        self.registry.register(self)

    def __repr__(self) -> str:
        return f"<SeeBorg state={self.state.value} guilds={len(self.database)}>"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Set up stages, bind listeners, start autosave, then log in.

        A failed login is logged; the session stays started either way.
        """
        if self.state is not SessionState.CREATED:
            raise InvariantViolation(f"cannot start a session that is {self.state.value}")
        logger.info("seeborg.starting")

        logger.info("seeborg.setting_up_stages")
        for stage in self.pipeline.all_stages:
            stage.setup()

        logger.info("seeborg.registering_listeners")
        self.register_listeners()

        logger.info("seeborg.starting_autosave", period=self.config.autosave_period)
        self.start_autosave()

        self.state = SessionState.STARTED
        self._login()

    def _login(self) -> None:
        if not self.config.token:
            logger.error("seeborg.login_failed", error="no token configured")
            return
        logger.info("seeborg.logging_in")
        self._login_task = asyncio.create_task(
            self.client.start(self.config.token), name="seeborg.client"
        )
        self._login_task.add_done_callback(self._on_login_done)

    def _on_login_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if isinstance(exc, discord.LoginFailure):
            logger.error("seeborg.login_failed", error=str(exc))
        elif exc is not None:
            logger.error("seeborg.client_failed", error=str(exc), exc_info=exc)

    async def destroy(self) -> list[str]:
        """Tear the session down and make it unusable.

        Stops listening, closes the client, stops autosave, saves every
        database, then leaves the registry. Returns the ids of guilds whose
        final save failed. Destroying twice is a broken contract.
        """
        if self.state is SessionState.DESTROYED:
            raise InvariantViolation(f"{self!r} destroyed twice")
        self.state = SessionState.DESTROYED

        logger.info("seeborg.destroy", step="unregister_listeners")
        self.unregister_listeners()

        logger.info("seeborg.destroy", step="teardown_stages")
        for stage in reversed(self.pipeline.all_stages):
            try:
                stage.teardown()
            except Exception:
                logger.exception("seeborg.stage_teardown_failed", stage=stage.name)

        logger.info("seeborg.destroy", step="close_client")
        try:
            await self.client.close()
        except Exception:
            logger.exception("seeborg.client_close_failed")

        logger.info("seeborg.destroy", step="stop_autosave")
        await self.stop_autosave()
        await self._cancel_background()

        logger.info("seeborg.destroy", step="save_databases")
        failed = self.save_all()

        logger.info("seeborg.destroy", step="unregister")
        self.registry.unregister(self)

        logger.info("seeborg.destroyed", failed_saves=len(failed))
        return failed

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def register_listeners(self) -> None:
        for name in self.EVENTS:
            self.client.event(getattr(self, name))

    def unregister_listeners(self) -> None:
        for name in self.EVENTS:
            if name in vars(self.client):
                delattr(self.client, name)

    async def on_ready(self) -> None:
        guilds = list(self.client.guilds)
        logger.info("seeborg.connected", user=str(self.client.user), guild_count=len(guilds))
        for guild in guilds:
            logger.info("seeborg.connected_guild", name=guild.name, guild_id=guild.id)
            self._load_database_logged(guild)

        if self.config.activity:
            logger.info("seeborg.setting_presence", activity=self.config.activity)
            activity = build_activity(self.config.activity, self.config.activity_type)
            self.spawn(self.client.change_presence(activity=activity), name="seeborg.presence")

    async def on_message(self, message: Any) -> None:
        content = message.content or ""
        logger.info(
            "seeborg.message",
            channel=getattr(message.channel, "name", None),
            channel_id=message.channel.id,
            user=str(message.author),
            user_id=message.author.id,
            preview=content[:80],
        )
        self.pipeline.process(message)

    async def on_guild_join(self, guild: Any) -> None:
        logger.info("seeborg.joined_guild", name=guild.name, guild_id=guild.id)
        self._load_database_logged(guild)

    # ------------------------------------------------------------------
    # Guild databases
    # ------------------------------------------------------------------

    def load_database(self, guild: Any) -> Database:
        """(Re)load the database for *guild* and make it reachable.

        The on-disk file is created only if missing; the identity sidecar is
        written only if missing. A replaced in-memory store with unsaved
        lines is saved first.
        """
        data_path, identity_path = database_paths(self.config.database_path, guild.id)

        previous = self.database.get(guild.id)
        if previous is not None and previous.dirty:
            try:
                previous.save()
            except Exception as e:
                logger.error("seeborg.save_failed", guild_id=guild.id, error=str(e))

        database = Database(data_path)
        database.init()
        self.database[guild.id] = database

        try:
            if write_identity_file(identity_path, guild.name, guild.id):
                logger.debug("seeborg.identity_written", path=str(identity_path))
        except OSError as e:
            logger.warning("seeborg.identity_write_failed", path=str(identity_path), error=str(e))

        logger.info("seeborg.guild_loaded", guild_id=guild.id, lines=database.line_count)
        return database

    def _load_database_logged(self, guild: Any) -> None:
        try:
            self.load_database(guild)
        except (DatabaseError, OSError) as e:
            logger.error("seeborg.guild_load_failed", guild_id=guild.id, error=str(e))

    def database_for(self, guild: Any) -> Database | None:
        if guild is None:
            return None
        return self.database.get(guild.id)

    def save_all(self) -> list[str]:
        """Save every loaded database; one failure never skips the others."""
        failed: list[str] = []
        for guild_id, database in list(self.database.items()):
            try:
                database.save()
            except Exception as e:
                logger.error("seeborg.save_failed", guild_id=guild_id, error=str(e))
                failed.append(str(guild_id))
        logger.info("seeborg.saved", saved=len(self.database) - len(failed), failed=len(failed))
        return failed

    # ------------------------------------------------------------------
    # Autosave
    # ------------------------------------------------------------------

    def start_autosave(self, period: float | None = None) -> None:
        if self._autosave_task is not None:
            return
        interval = period if period is not None else self.config.autosave_period
        self._autosave_task = asyncio.create_task(
            self._autosave_loop(interval), name="seeborg.autosave"
        )

    async def stop_autosave(self) -> None:
        """Cancel the autosave task. A no-op if it is not running."""
        if self._autosave_task is not None:
            self._autosave_task.cancel()
            try:
                await self._autosave_task
            except asyncio.CancelledError:
                pass
            self._autosave_task = None

    async def _autosave_loop(self, interval: float) -> None:
        try:
            while True:
                await asyncio.sleep(interval)
                logger.info("seeborg.autosave", guilds=len(self.database))
                self.save_all()
        except asyncio.CancelledError:
            pass

    # ------------------------------------------------------------------
    # Helpers used by the stages
    # ------------------------------------------------------------------

    def is_ignored(self, user: Any, channel: Any) -> bool:
        """True for the bot's own messages and for users ignored here."""
        me = self.client.user
        if me is not None and user.id == me.id:
            return True
        guild = getattr(channel, "guild", None)
        return self.config.is_ignored(user.id, channel.id, guild.id if guild is not None else None)

    def behavior(self, key: str, channel: Any) -> Any:
        guild = getattr(channel, "guild", None)
        return self.config.resolve(key, channel.id, guild.id if guild is not None else None)

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> asyncio.Task:
        """Run *coro* in the background; its failure is logged, never raised."""
        task = asyncio.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("seeborg.background_failed", task=task.get_name(), error=str(exc))

    async def wait_background(self) -> None:
        """Wait for every pending background task to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _cancel_background(self) -> None:
        tasks = list(self._background)
        if self._login_task is not None and not self._login_task.done():
            tasks.append(self._login_task)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._login_task = None
