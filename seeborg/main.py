"""
Main — start one SeeBorg session and keep it alive until told to stop.

  1. Configure logging
  2. Build the Discord client and the session
  3. Start the session (stages, listeners, autosave, login)
  4. Wait for SIGINT/SIGTERM
  5. Destroy every registered session through the registry
"""

from __future__ import annotations

import asyncio
import logging
import signal

import structlog

from seeborg.bot import SeeBorg
from seeborg.client import create_client
from seeborg.config import SeeBorgConfig
from seeborg.registry import InstanceRegistry, default_registry

_logging_configured = False


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog and standard-library logging for SeeBorg entry points.

    Safe to call more than once — subsequent calls are no-ops.
    """
    global _logging_configured  # noqa: PLW0603
    if _logging_configured:
        return
    _logging_configured = True

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(format="%(message)s", level=level)
    # discord.py is chatty at INFO; keep its gateway noise out unless verbose.
    logging.getLogger("discord").setLevel(logging.INFO if verbose else logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=True),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


logger = structlog.get_logger(__name__)


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, stop: asyncio.Event) -> None:
    """Install SIGINT/SIGTERM handlers for graceful shutdown."""
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            pass


def _remove_signal_handlers(loop: asyncio.AbstractEventLoop) -> None:
    """Restore default SIGINT/SIGTERM handling."""
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.remove_signal_handler(sig)
        except NotImplementedError:
            pass


async def run(
    config: SeeBorgConfig,
    *,
    registry: InstanceRegistry | None = None,
    stop: asyncio.Event | None = None,
) -> None:
    """Run one session until *stop* is set (or a shutdown signal arrives)."""
    registry = registry if registry is not None else default_registry
    stop = stop or asyncio.Event()
    loop = asyncio.get_running_loop()
    _install_signal_handlers(loop, stop)

    try:
        bot = SeeBorg(create_client(), config, registry=registry)
        await bot.start()
        await stop.wait()
        logger.info("seeborg.shutdown_requested")
    finally:
        _remove_signal_handlers(loop)
        await registry.cleanup()
        logger.info("seeborg.stopped")


def run_bot(config: SeeBorgConfig) -> None:
    """Blocking entry point used by the CLI."""
    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        pass
