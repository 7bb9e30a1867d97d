"""
Instance registry — the process-wide set of live SeeBorg sessions.

A registry is an explicit object so tests can use isolated ones; the module
also keeps a default registry that the entry point tears down on shutdown.
Membership is guarded by a lock so sessions driven from different threads
can register and deregister safely.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import structlog

from seeborg.errors import InvariantViolation

if TYPE_CHECKING:
    from seeborg.bot import SeeBorg

logger = structlog.get_logger(__name__)


class InstanceRegistry:
    """A set of live sessions, with no duplicates."""

    def __init__(self) -> None:
        self._instances: set["SeeBorg"] = set()
        self._lock = threading.Lock()

    def register(self, instance: "SeeBorg") -> None:
        with self._lock:
            self._instances.add(instance)

    def unregister(self, instance: "SeeBorg") -> None:
        """Remove *instance*; it is a broken contract if it was not present."""
        with self._lock:
            if instance not in self._instances:
                raise InvariantViolation(f"{instance!r} is not registered")
            self._instances.remove(instance)

    def __contains__(self, instance: object) -> bool:
        with self._lock:
            return instance in self._instances

    def __len__(self) -> int:
        with self._lock:
            return len(self._instances)

    def snapshot(self) -> list["SeeBorg"]:
        with self._lock:
            return list(self._instances)

    async def cleanup(self) -> None:
        """Destroy every registered session and verify none remain.

        Every member gets a destroy attempt even when an earlier one fails;
        the failures and any survivors are then reported as one
        :class:`InvariantViolation`.
        """
        failures: list[str] = []
        for instance in self.snapshot():
            try:
                await instance.destroy()
            except Exception as exc:
                logger.error("registry.destroy_failed", instance=repr(instance), error=str(exc))
                failures.append(repr(instance))
        remaining = len(self)
        if failures or remaining:
            raise InvariantViolation(
                f"registry cleanup left {remaining} live instance(s); failed: {failures}"
            )
        logger.info("registry.cleaned_up")

    teardown = cleanup


default_registry = InstanceRegistry()


async def cleanup() -> None:
    """Destroy every session in the default registry."""
    await default_registry.cleanup()
