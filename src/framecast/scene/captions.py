"""Built-in caption scene: scene title, fading cue text, moving accent and progress bar."""

import html
import logging
from typing import Any

from framecast.animation.sync import DEFAULT_ENGINE, AnimationBinding, load_engine
from framecast.models.grid import VideoGrid
from framecast.scene.base import SceneRoot, register_scene
from framecast.scene.composition import active_cue, active_scene
from framecast.timing.frame_time import TimeUnit, cue_start_frame, to_elapsed
from framecast.timing.motion import cyclic_motion

logger = logging.getLogger(__name__)

CUE_FADE_MS = 400.0
CUE_RISE_PX = 24.0
MARKER_CYCLE_SEC = 2.8
MARKER_SIZE_PX = 24
DEFAULT_BACKGROUND = "#000000"
DEFAULT_FONT = "ui-sans-serif, system-ui, sans-serif"


def build_cue_timeline(engine: Any, root: dict[str, dict[str, Any]], ctx: dict[str, Any]):
    """Fade and lift the cue block in over ``CUE_FADE_MS``."""
    return (
        engine.create_timeline(root)
        .add("cue", "opacity", [(0, 0.0), (CUE_FADE_MS, 1.0, "easeOutCubic")])
        .add("cue", "translateY", [(0, CUE_RISE_PX), (CUE_FADE_MS, 0.0, "easeOutCubic")])
    )


@register_scene("captions")
class CaptionScene(SceneRoot):
    """Renders the active scene's title and the active cue of ``props["script"]``.

    Cue animation time is measured from the cue's own start frame, so the
    fade restarts at every cue boundary.
    """

    def __init__(self, grid: VideoGrid, props: dict[str, Any] | None = None):
        super().__init__(grid, props)
        self.styles: dict[str, dict[str, Any]] = {}

    @property
    def script(self) -> dict[str, Any]:
        script = self.props.get("script")
        return script if isinstance(script, dict) else {}

    def time_sec(self, frame: int | None = None) -> float:
        index = self.frame if frame is None else frame
        return to_elapsed(index, self.grid.fps, unit=TimeUnit.SECONDS)

    def create_bindings(self) -> list[AnimationBinding]:
        engine = self.props.get("engine") or DEFAULT_ENGINE
        return [AnimationBinding(self.styles, load_engine(engine), build_cue_timeline)]

    def binding_start_frame(self, frame: int) -> int:
        cue = active_cue(self.script, self.time_sec(frame))
        return cue_start_frame(cue, self.grid.fps)

    def render_markup(self) -> str:
        grid = self.grid
        time_sec = self.time_sec()
        scene = active_scene(self.script, time_sec) or {}
        cue = active_cue(self.script, time_sec)
        scene_styles = scene.get("styles") if isinstance(scene.get("styles"), dict) else {}

        background = scene_styles.get("background") or DEFAULT_BACKGROUND
        font = scene_styles.get("fontFamily") or DEFAULT_FONT
        duration = grid.duration_sec
        progress = min(100.0, max(0.0, time_sec / duration * 100)) if duration > 0 else 0.0

        motion = cyclic_motion(self.frame, grid.fps, MARKER_CYCLE_SEC)
        marker_x = motion.between(0.0, float(max(0, grid.width - MARKER_SIZE_PX)))

        parts = [
            f'<div class="scene" style="position:relative;width:100%;height:100%;'
            f'background:{html.escape(str(background))};font-family:{html.escape(str(font))};color:#ffffff">'
        ]
        title = scene.get("title") or scene.get("id")
        if title:
            parts.append(
                f'<h1 class="title" style="margin:0;padding:48px 64px 0;font-size:48px">'
                f"{html.escape(str(title))}</h1>"
            )
        if cue and cue.get("text"):
            cue_style = self.styles.get("cue", {})
            opacity = float(cue_style.get("opacity", 1.0))
            offset = float(cue_style.get("translateY", 0.0))
            parts.append(
                f'<p class="cue" style="position:absolute;left:64px;right:64px;bottom:96px;'
                f"margin:0;font-size:36px;opacity:{opacity:.4f};"
                f'transform:translateY({offset:.2f}px)">{html.escape(str(cue["text"]))}</p>'
            )
        parts.append(
            f'<div class="marker" style="position:absolute;top:16px;left:{marker_x:.2f}px;'
            f'width:{MARKER_SIZE_PX}px;height:{MARKER_SIZE_PX}px;border-radius:50%;background:#ffcc00"></div>'
        )
        parts.append(
            f'<div class="progress" style="position:absolute;left:0;bottom:0;height:8px;'
            f'width:{progress:.3f}%;background:#ffffff"></div>'
        )
        parts.append("</div>")
        return "".join(parts)
