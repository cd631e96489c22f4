"""Video grid derivation from composition metadata.

Derivation never fails: a render grid must always be producible, so any
absent or invalid value falls back to a default.
"""

import logging
import math
from collections.abc import Mapping
from typing import Any

from framecast.models.grid import DerivedVideoConfig, FrameRange, VideoGrid
from framecast.models.pipeline import PreviewOptions
from framecast.scene.composition import scene_end_sec, summarize_timeline
from framecast.timing.frame_time import finite_number

logger = logging.getLogger(__name__)

DEFAULT_FPS = 30
DEFAULT_WIDTH = 1280
DEFAULT_HEIGHT = 720


def _positive_int(*candidates: Any) -> int | None:
    """First candidate that is a finite number rounding to a positive integer."""
    for value in candidates:
        number = finite_number(value)
        if number is None:
            continue
        as_int = int(round(number))
        if as_int > 0:
            return as_int
    return None


def duration_to_frames(duration_sec: float, fps: int) -> int:
    return max(1, math.ceil(duration_sec * fps))


def derive_video_config(
    script: Mapping[str, Any] | None,
    timeline: Mapping[str, Any] | None = None,
    *,
    fps: int | None = None,
    width: int | None = None,
    height: int | None = None,
    duration_frames: int | None = None,
    defaults: Mapping[str, Any] | None = None,
) -> DerivedVideoConfig:
    """Derive the frame grid plus the composition duration in seconds."""
    script = script if isinstance(script, Mapping) else {}
    meta = script.get("meta")
    meta = meta if isinstance(meta, Mapping) else {}
    defaults = defaults or {}

    resolved_fps = _positive_int(fps, script.get("fps"), meta.get("fps"), defaults.get("fps"))
    resolved_fps = resolved_fps or DEFAULT_FPS
    resolved_width = _positive_int(width, meta.get("width"), defaults.get("width")) or DEFAULT_WIDTH
    resolved_height = (
        _positive_int(height, meta.get("height"), defaults.get("height")) or DEFAULT_HEIGHT
    )

    meta_duration = finite_number(meta.get("durationSeconds")) or 0.0
    duration_sec = max(
        0.0,
        meta_duration,
        scene_end_sec(script),
        summarize_timeline(timeline).duration_sec,
    )

    resolved_frames = _positive_int(duration_frames)
    if resolved_frames is None:
        resolved_frames = duration_to_frames(duration_sec, resolved_fps)

    grid = VideoGrid(
        fps=resolved_fps,
        width=resolved_width,
        height=resolved_height,
        duration_frames=resolved_frames,
    )
    logger.debug("Derived grid %s from %.3fs of composition", grid, duration_sec)
    return DerivedVideoConfig(grid=grid, duration_sec=duration_sec)


def derive_video_grid(
    script: Mapping[str, Any] | None,
    timeline: Mapping[str, Any] | None = None,
    **overrides: Any,
) -> VideoGrid:
    """Derive the canonical ``VideoGrid`` of a composition."""
    return derive_video_config(script, timeline, **overrides).grid


def resolve_frame_range(
    grid: VideoGrid, start_frame: int | None = None, end_frame: int | None = None
) -> FrameRange:
    """Clamp an optional inclusive sub-range into ``[0, duration_frames)``."""
    first = max(0, start_frame if start_frame is not None else 0)
    last = grid.last_frame if end_frame is None else min(grid.last_frame, end_frame)
    if last < first:
        return FrameRange(start_frame=first, end_frame=first - 1)
    return FrameRange(start_frame=first, end_frame=last)


def preview_frame_range(preview: PreviewOptions) -> tuple[int, int]:
    """Inclusive ``(start, end)`` frames of a preview excerpt at the preview fps."""
    start = math.floor(preview.offset_sec * preview.fps)
    end = math.floor((preview.offset_sec + preview.duration_sec) * preview.fps)
    return start, end
