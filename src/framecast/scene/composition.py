"""Read-only helpers over JSON composition data (script and audio timeline).

Composition data arrives as plain mappings produced by the authoring side.
These helpers never raise on malformed input: entries with the wrong shape
are skipped and non-numeric times are treated as absent.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from framecast.timing.frame_time import finite_number


class ClipRange(BaseModel):
    start_sec: float = Field(..., ge=0)
    duration_sec: float = Field(..., ge=0)

    @property
    def end_sec(self) -> float:
        return self.start_sec + self.duration_sec


class TimelineSummary(BaseModel):
    track_count: int = Field(default=0, ge=0)
    clip_count: int = Field(default=0, ge=0)
    duration_sec: float = Field(default=0.0, ge=0)


def _mappings(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def get_scenes(script: Mapping[str, Any] | None) -> list[Mapping[str, Any]]:
    return _mappings(_mapping(script).get("scenes"))


def get_timeline_tracks(timeline: Mapping[str, Any] | None) -> list[Mapping[str, Any]]:
    return _mappings(_mapping(_mapping(timeline).get("audio")).get("tracks"))


def clip_range(clip: Mapping[str, Any]) -> ClipRange:
    start = finite_number(clip.get("startSec")) or 0.0
    duration = finite_number(clip.get("durationSec"))
    if duration is None:
        duration = finite_number(_mapping(clip.get("chosen")).get("durationSec")) or 0.0
    return ClipRange(start_sec=max(0.0, start), duration_sec=max(0.0, duration))


def summarize_timeline(timeline: Mapping[str, Any] | None) -> TimelineSummary:
    tracks = get_timeline_tracks(timeline)
    clip_count = 0
    max_end = 0.0
    for track in tracks:
        for clip in _mappings(track.get("clips")):
            clip_count += 1
            max_end = max(max_end, clip_range(clip).end_sec)
    return TimelineSummary(track_count=len(tracks), clip_count=clip_count, duration_sec=max_end)


def scene_end_sec(script: Mapping[str, Any] | None) -> float:
    max_end = 0.0
    for scene in get_scenes(script):
        end = finite_number(scene.get("endSec")) or 0.0
        max_end = max(max_end, end)
    return max_end


def _is_active(
    time_sec: float, start: Any, end: Any, allow_open_ended: bool = False
) -> bool:
    start_sec = finite_number(start)
    start_sec = 0.0 if start_sec is None else start_sec
    end_sec = finite_number(end)
    if end_sec is None:
        end_sec = float("inf") if allow_open_ended else start_sec
    return start_sec <= time_sec < end_sec


def active_scene(
    script: Mapping[str, Any] | None, time_sec: float, allow_open_ended: bool = False
) -> Mapping[str, Any] | None:
    """The first scene whose ``[startSec, endSec)`` contains ``time_sec``."""
    if finite_number(time_sec) is None:
        return None
    for scene in get_scenes(script):
        if _is_active(time_sec, scene.get("startSec"), scene.get("endSec"), allow_open_ended):
            return scene
    return None


def active_cue(
    script: Mapping[str, Any] | None, time_sec: float, allow_open_ended: bool = False
) -> Mapping[str, Any] | None:
    scene = active_scene(script, time_sec, allow_open_ended)
    if scene is None:
        return None
    for cue in _mappings(scene.get("cues")):
        if _is_active(time_sec, cue.get("startSec"), cue.get("endSec"), allow_open_ended):
            return cue
    return None
