"""Seekable keyframe animation engine.

A ``Timeline`` owns a set of property tracks, each a list of keyframes at
millisecond offsets. ``seek(ms)`` writes the interpolated value of every
track into its target element's style mapping. The engine has no clock:
the state after ``seek(t)`` depends only on ``t``.
"""

from collections.abc import MutableMapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from framecast.timing.easing import EasingFn, linear, resolve_easing
from framecast.timing.frame_time import clamp

KeyframeValue = float | int | str | tuple[float, float]


@dataclass(frozen=True)
class Keyframe:
    offset_ms: float
    value: KeyframeValue
    easing: EasingFn = linear


@dataclass
class Track:
    target: str
    prop: str
    keyframes: list[Keyframe] = field(default_factory=list)

    @property
    def end_ms(self) -> float:
        return self.keyframes[-1].offset_ms if self.keyframes else 0.0

    def value_at(self, time_ms: float) -> KeyframeValue:
        frames = self.keyframes
        if time_ms <= frames[0].offset_ms:
            return frames[0].value
        if time_ms >= frames[-1].offset_ms:
            return frames[-1].value
        for prev, nxt in zip(frames, frames[1:]):
            if prev.offset_ms <= time_ms <= nxt.offset_ms:
                span = nxt.offset_ms - prev.offset_ms
                if span == 0:
                    return nxt.value
                progress = nxt.easing(clamp((time_ms - prev.offset_ms) / span, 0.0, 1.0))
                return _mix(prev.value, nxt.value, progress)
        return frames[-1].value


def _mix(start: KeyframeValue, end: KeyframeValue, progress: float) -> KeyframeValue:
    if isinstance(start, (int, float)) and isinstance(end, (int, float)):
        return start + (end - start) * progress
    if isinstance(start, tuple) and isinstance(end, tuple):
        return (
            start[0] + (end[0] - start[0]) * progress,
            start[1] + (end[1] - start[1]) * progress,
        )
    # Strings and mismatched kinds snap at the midpoint
    return start if progress < 0.5 else end


class Timeline:
    """A set of keyframe tracks bound to a root of element styles."""

    def __init__(self, root: MutableMapping[str, dict[str, Any]]):
        self.root = root
        self.tracks: list[Track] = []
        self.current_ms = 0.0
        self.paused = False

    @property
    def duration(self) -> float:
        return max((track.end_ms for track in self.tracks), default=0.0)

    def add(
        self,
        target: str,
        prop: str,
        keyframes: Sequence[tuple[float, KeyframeValue] | tuple[float, KeyframeValue, str]],
    ) -> "Timeline":
        """Add a track from ``(offset_ms, value[, easing_name])`` tuples."""
        if not keyframes:
            raise ValueError(f"Track {target}.{prop} needs at least one keyframe")
        frames = []
        for item in sorted(keyframes, key=lambda k: k[0]):
            easing = resolve_easing(item[2]) if len(item) > 2 else linear
            frames.append(Keyframe(offset_ms=float(item[0]), value=item[1], easing=easing))
        self.tracks.append(Track(target=target, prop=prop, keyframes=frames))
        return self

    def seek(self, time_ms: float) -> None:
        self.current_ms = time_ms
        for track in self.tracks:
            self.root.setdefault(track.target, {})[track.prop] = track.value_at(time_ms)

    def pause(self) -> None:
        self.paused = True


def create_timeline(root: MutableMapping[str, dict[str, Any]]) -> Timeline:
    return Timeline(root)
