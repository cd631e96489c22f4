"""Scene roots: the mounted composition a rendering worker captures from."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

from framecast.animation.sync import AnimationBinding
from framecast.models.errors import ConfigurationError
from framecast.models.grid import VideoGrid

logger = logging.getLogger(__name__)


class SceneRoot(ABC):
    """One mounted instance of a scene, owned by exactly one worker.

    ``mount`` is awaited once before the first frame. After that every
    ``set_frame`` is synchronous and forces all animation bindings to the
    frame's elapsed time.
    """

    def __init__(self, grid: VideoGrid, props: dict[str, Any] | None = None):
        self.grid = grid
        self.props = props or {}
        self.frame = 0
        self.bindings: list[AnimationBinding] = []
        self.mounted = False

    def clamp_frame(self, frame: int) -> int:
        return min(max(0, round(frame)), self.grid.last_frame)

    def create_bindings(self) -> list[AnimationBinding]:
        """Animation bindings owned by this mount. Scenes with engines override this."""
        return []

    def binding_start_frame(self, frame: int) -> int:
        """Frame that animation time is measured from when showing ``frame``."""
        return 0

    async def mount(self, frame: int = 0) -> None:
        self.frame = self.clamp_frame(frame)
        self.bindings = self.create_bindings()
        start = self.binding_start_frame(self.frame)
        for binding in self.bindings:
            binding.start_frame = start
        try:
            await asyncio.gather(
                *(binding.mount(self.frame, self.grid.fps) for binding in self.bindings)
            )
        except BaseException:
            self.unmount()
            raise
        self.mounted = True

    def set_frame(self, frame: int) -> None:
        self.frame = self.clamp_frame(frame)
        start = self.binding_start_frame(self.frame)
        for binding in self.bindings:
            binding.seek_frame(self.frame, self.grid.fps, start_frame=start)

    @abstractmethod
    def render_markup(self) -> str:
        """Markup for the current frame; must depend only on the frame and props."""
        ...

    def render_document(self) -> str:
        """Standalone HTML document sized to the grid."""
        width, height = self.grid.width, self.grid.height
        return "".join(
            [
                "<!doctype html>",
                "<html>",
                "<head>",
                '<meta charset="utf-8" />',
                f"<style>html,body{{margin:0;padding:0;width:{width}px;height:{height}px;}}</style>",
                "</head>",
                f'<body><div id="root" style="width:100%;height:100%">{self.render_markup()}</div></body>',
                "</html>",
            ]
        )

    def unmount(self) -> None:
        for binding in self.bindings:
            binding.unmount()
        self.bindings = []
        self.mounted = False


SceneFactory = type[SceneRoot]

_SCENES: dict[str, SceneFactory] = {}


def register_scene(name: str):
    """Class decorator adding a scene to the registry under ``name``."""

    def decorator(cls: SceneFactory) -> SceneFactory:
        _SCENES[name] = cls
        return cls

    return decorator


def get_scene(name: str) -> SceneFactory:
    if name not in _SCENES:
        raise ConfigurationError(
            f'Unknown scene "{name}". Registered: {", ".join(sorted(_SCENES)) or "none"}',
            details={"scene": name},
        )
    return _SCENES[name]


def registered_scenes() -> list[str]:
    return sorted(_SCENES)
