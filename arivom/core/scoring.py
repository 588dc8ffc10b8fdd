"""Rounding and clock helpers used by the scoring formulas."""

from __future__ import annotations

import math
from datetime import datetime, timezone


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves going up.

    Stored scores were produced with this rule (2.5 -> 3), which differs from
    Python's round() (2.5 -> 2).
    """
    # absorb float noise such as 0.7 * 75 = 52.49999...
    return int(math.floor(round(value, 9) + 0.5))


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)
