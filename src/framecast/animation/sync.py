"""Binding between a frame-indexed render and a seekable animation engine.

Animation engines are written for real-time playback. A render instead
jumps straight to an arbitrary frame, on an arbitrary worker, and must
get exactly the state real-time playback would have reached. The
binding gets there by never letting the engine run: the engine is
loaded once, its timeline is built once per mount, and every frame
change is turned into an explicit ``seek`` to that frame's elapsed time.

Lifecycle per mount::

    UNMOUNTED --mount()--> LOADING --engine resolved--> READY
        any state --unmount()--> RELEASED

The engine load is the only suspension point. If ``unmount`` happens
while the load is still in flight, the loaded engine is discarded.
"""

import asyncio
import importlib
import logging
import math
from collections.abc import Awaitable, Callable
from enum import StrEnum
from types import ModuleType
from typing import Any, Protocol, runtime_checkable

from framecast.timing.frame_time import TimeUnit, clamp, to_elapsed

logger = logging.getLogger(__name__)

DEFAULT_ENGINE = "framecast.animation.keyframes"


@runtime_checkable
class TimelineHandle(Protocol):
    """Engine-specific animated state that can be forced to a time."""

    @property
    def duration(self) -> Any: ...

    def seek(self, time: float) -> None: ...


class BindingState(StrEnum):
    UNMOUNTED = "unmounted"
    LOADING = "loading"
    READY = "ready"
    RELEASED = "released"


EngineLoader = Callable[[], Awaitable[Any]]
TimelineBuilder = Callable[[Any, Any, dict[str, Any]], TimelineHandle]


def load_engine(module_name: str = DEFAULT_ENGINE) -> EngineLoader:
    """Loader that imports ``module_name`` off the event loop."""

    async def loader() -> ModuleType:
        return await asyncio.to_thread(importlib.import_module, module_name)

    return loader


def safe_duration(timeline: TimelineHandle) -> float:
    """The timeline's duration, or 0 when it is unknown, negative or not finite."""
    try:
        duration = float(timeline.duration)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(duration) or duration < 0:
        return 0.0
    return duration


class AnimationBinding:
    """Owns one engine timeline for the lifetime of one scene-root mount."""

    def __init__(
        self,
        root: Any,
        loader: EngineLoader,
        build_timeline: TimelineBuilder,
        *,
        start_frame: int = 0,
        unit: TimeUnit = TimeUnit.MILLISECONDS,
        context: dict[str, Any] | None = None,
    ):
        self.root = root
        self.loader = loader
        self.build_timeline = build_timeline
        self.start_frame = start_frame
        self.unit = unit
        self.context = context or {}
        self.state = BindingState.UNMOUNTED
        self.engine: Any = None
        self.timeline: TimelineHandle | None = None
        self.frame = 0
        self.fps = 30.0
        self.last_seek: float | None = None
        self._alive = False

    @property
    def is_ready(self) -> bool:
        return self.state == BindingState.READY

    async def mount(self, frame: int, fps: float) -> None:
        """Load the engine, build the timeline and seek it to ``frame``."""
        if self.state != BindingState.UNMOUNTED:
            raise RuntimeError(f"Cannot mount a binding in state {self.state}")
        self.frame, self.fps = frame, fps
        self.state = BindingState.LOADING
        self._alive = True

        try:
            engine = await self.loader()
        except BaseException:
            self.unmount()
            raise

        if not self._alive:
            logger.debug("Discarding engine load that finished after unmount")
            return
        self.engine = engine
        self.timeline = self.build_timeline(engine, self.root, {"fps": fps, **self.context})
        self.state = BindingState.READY
        # Seek to the frame current now, which may have changed during the load
        self._seek(self.frame, self.fps)

    def seek_frame(
        self, frame: int, fps: float | None = None, *, start_frame: int | None = None
    ) -> float | None:
        """Record the current frame and, once ready, seek the timeline to it."""
        if self.state == BindingState.RELEASED:
            return None
        self.frame = frame
        if fps is not None:
            self.fps = fps
        if start_frame is not None:
            self.start_frame = start_frame
        if self.state != BindingState.READY:
            return None
        return self._seek(self.frame, self.fps)

    def _seek(self, frame: int, fps: float) -> float:
        timeline = self.timeline
        elapsed = to_elapsed(frame, fps, start_frame=self.start_frame, unit=self.unit)
        clamped = clamp(elapsed, 0.0, safe_duration(timeline))
        timeline.seek(clamped)
        self.last_seek = clamped
        return clamped

    def unmount(self) -> None:
        """Pause and drop the engine instance; safe to call in any state."""
        self._alive = False
        timeline = self.timeline
        if timeline is not None:
            pause = getattr(timeline, "pause", None)
            if callable(pause):
                pause()
        self.timeline = None
        self.engine = None
        self.state = BindingState.RELEASED

    async def __aenter__(self) -> "AnimationBinding":
        await self.mount(self.frame, self.fps)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.unmount()
