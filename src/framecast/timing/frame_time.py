"""Frame index to elapsed time mapping.

Every function here is pure: the same arguments always give the same
result, so any worker can reproduce any frame's time independently of
render order.
"""

import logging
import math
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class TimeUnit(StrEnum):
    """Native time unit of an animation engine."""

    SECONDS = "s"
    MILLISECONDS = "ms"


_UNIT_SCALE = {
    TimeUnit.SECONDS: 1.0,
    TimeUnit.MILLISECONDS: 1000.0,
}


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return math.floor(value + 0.5)


def to_elapsed(
    frame_index: int,
    fps: float,
    start_frame: int = 0,
    unit: TimeUnit = TimeUnit.MILLISECONDS,
) -> float:
    """Elapsed time of ``frame_index`` relative to ``start_frame``.

    Computed as ``(frame_index - start_frame) / fps`` and scaled to ``unit``.
    """
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")
    seconds = (frame_index - start_frame) / fps
    if unit == TimeUnit.SECONDS:
        return seconds
    return seconds * _UNIT_SCALE[unit]


def frame_to_time_ms(frame: int, fps: float) -> float:
    return to_elapsed(frame, fps, unit=TimeUnit.MILLISECONDS)


def time_ms_to_frame(time_ms: float, fps: float) -> int:
    return round_half_up((time_ms / 1000) * fps)


def finite_number(value: Any) -> float | None:
    """Return ``value`` as a float when it is a finite real number, else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def cue_start_frame(cue: Mapping[str, Any] | None, fps: float) -> int:
    """Frame at which a narrative cue starts on the frame grid.

    Cues without a finite ``startSec`` anchor at frame 0.
    """
    if not cue:
        return 0
    start_sec = finite_number(cue.get("startSec"))
    if start_sec is None:
        logger.debug("Cue %r has no finite startSec, anchoring at frame 0", cue.get("id"))
        return 0
    return round_half_up(start_sec * fps)
