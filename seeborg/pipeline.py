"""
Message pipeline — the fixed order every inbound message flows through.

    command handler → answerer → learner → reaction

If the command handler reports that it handled the message, nothing else
runs. Otherwise every remaining stage runs regardless of what the others
did; their return values are only logged.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from seeborg.bot import SeeBorg

logger = structlog.get_logger(__name__)


class Stage(ABC):
    """Base class for pipeline stages.

    Subclasses implement :meth:`apply`. It must not await: anything that
    talks to the network goes through :meth:`SeeBorg.spawn`.
    """

    name = "stage"

    def __init__(self, bot: "SeeBorg") -> None:
        self.bot = bot

    def setup(self) -> None:
        """Called once from ``SeeBorg.start()``."""

    def teardown(self) -> None:
        """Called once from ``SeeBorg.destroy()``."""

    @abstractmethod
    def apply(self, message: Any) -> bool:
        """Handle *message*; return True if this stage acted on it."""


class MessagePipeline:
    """Runs a command stage, then the remaining stages unconditionally."""

    def __init__(self, command_stage: Stage, stages: list[Stage]) -> None:
        self.command_stage = command_stage
        self.stages = list(stages)

    @property
    def all_stages(self) -> list[Stage]:
        return [self.command_stage, *self.stages]

    def process(self, message: Any) -> dict[str, bool]:
        """Run *message* through every stage; return ``{stage_name: acted}``."""
        results: dict[str, bool] = {}
        handled = bool(self.command_stage.apply(message))
        results[self.command_stage.name] = handled
        if handled:
            logger.debug("pipeline.handled_by_command", message_id=getattr(message, "id", None))
            return results

        for stage in self.stages:
            results[stage.name] = bool(stage.apply(message))
        logger.debug("pipeline.processed", message_id=getattr(message, "id", None), results=results)
        return results
