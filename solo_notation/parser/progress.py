"""Progress semantics for clocks, tracks, events and timers.

Pure functions, no state. Thresholds are module defaults and can be
overridden per call (the indexer passes the configured values).
"""

from __future__ import annotations

import math
from typing import Literal

NEAR_COMPLETE_THRESHOLD = 0.75
TIMER_URGENT_THRESHOLD = 2

ProgressStatus = Literal["complete", "near_complete", "in_progress", "not_started"]


def calculate_progress(current: int, total: int) -> int:
    """Percentage complete, 0–100, rounded half up. A zero total is 0%."""
    if total <= 0:
        return 0
    percent = math.floor(current * 100 / total + 0.5)
    return max(0, min(100, percent))


def is_complete(current: int, total: int) -> bool:
    return total > 0 and current >= total


def is_near_complete(
    current: int, total: int, threshold: float = NEAR_COMPLETE_THRESHOLD
) -> bool:
    """Not complete yet, but at or past `threshold` of the total."""
    if total <= 0 or is_complete(current, total):
        return False
    return current / total >= threshold


def is_timer_urgent(value: int, threshold: int = TIMER_URGENT_THRESHOLD) -> bool:
    """Still running (above zero) with `threshold` or fewer ticks left."""
    return 0 < value <= threshold


def progress_status(
    current: int, total: int, threshold: float = NEAR_COMPLETE_THRESHOLD
) -> ProgressStatus:
    if is_complete(current, total):
        return "complete"
    if is_near_complete(current, total, threshold):
        return "near_complete"
    if current > 0:
        return "in_progress"
    return "not_started"
