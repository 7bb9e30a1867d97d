"""Exception types shared across SeeBorg."""

from __future__ import annotations


class InvariantViolation(AssertionError):
    """A broken internal contract.

    Raised explicitly, so it also fires under ``python -O``. It aborts the
    operation that hit it; only registry cleanup logs it and moves on.
    """


class DatabaseError(RuntimeError):
    """A guild database could not be loaded or parsed."""
