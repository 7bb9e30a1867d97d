"""Percentage rolls shared by the probabilistic stages."""

from __future__ import annotations

import random

import structlog

logger = structlog.get_logger(__name__)


def roll_chance(percentage: int, rng: random.Random | None = None) -> bool:
    """Roll against *percentage* (0-100).

    The draw is uniform over [0, 99), so a rate ``p`` strictly between 0 and
    100 fires with probability ``min(p, 99) / 99``. Zero or less never fires;
    exactly 100 always does.
    """
    rolled = (rng or random).random() * 99
    logger.debug("chance.rolled", percentage=percentage, rolled=rolled)
    return percentage > 0 and (percentage > rolled or percentage == 100)
