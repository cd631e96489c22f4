"""Render a composition end to end: audio, grid, frames, then encode."""

import logging
import threading
from collections.abc import Callable
from pathlib import Path

from framecast.config import Settings, get_settings
from framecast.models.errors import EmptyFrameSequenceError, RenderCancelledError
from framecast.models.grid import FrameRange, VideoGrid
from framecast.models.pipeline import RenderRequest, RenderStage
from framecast.models.render import EncodeOptions, RenderedFrame, RenderVideoResult
from framecast.pipeline.generate import resolve_request_audio
from framecast.rendering.engine import VideoEncoder
from framecast.rendering.surface import PlaywrightSurface, RenderSurface
from framecast.rendering.workers import render_frames
from framecast.timing.grid import derive_video_config, preview_frame_range, resolve_frame_range

# Importing registers the built-in scenes
import framecast.scene.captions  # noqa: F401

logger = logging.getLogger(__name__)


def plan_render(
    request: RenderRequest, settings: Settings | None = None
) -> tuple[VideoGrid, FrameRange]:
    """Grid and frame range a request renders.

    A preview renders a short window at the preview fps while the grid
    still spans the whole composition.
    """
    settings = settings or get_settings()
    defaults = {
        "fps": settings.default_fps,
        "width": settings.default_width,
        "height": settings.default_height,
    }
    fps = request.preview.fps if request.preview else request.fps
    config = derive_video_config(
        request.script,
        request.timeline,
        fps=fps,
        width=request.width,
        height=request.height,
        duration_frames=request.duration_frames,
        defaults=defaults,
    )
    if request.preview:
        start, end = preview_frame_range(request.preview)
    else:
        start, end = request.start_frame, request.end_frame
    return config.grid, resolve_frame_range(config.grid, start, end)


def render_video(
    request: RenderRequest,
    frames_dir: Path,
    output_path: Path,
    *,
    surface: RenderSurface | None = None,
    encoder: VideoEncoder | None = None,
    settings: Settings | None = None,
    on_stage: Callable[[RenderStage], None] | None = None,
    on_frame: Callable[[RenderedFrame], None] | None = None,
    encode_progress: Callable[[float], None] | None = None,
    cancel_event: threading.Event | None = None,
) -> RenderVideoResult:
    """Render every requested frame, then encode them with the request's audio.

    A request carrying an audio plan is voiced first; its narration is
    written next to ``output_path`` and drives the grid. Encoding starts
    only after the whole frame range has been written.
    """
    settings = settings or get_settings()
    request = resolve_request_audio(
        request, Path(output_path).with_suffix(".wav"), settings=settings, on_stage=on_stage
    )
    surface = surface or PlaywrightSurface(timeout_ms=settings.capture_timeout_ms)
    encoder = encoder or VideoEncoder(settings)
    frame_pattern = request.frame_pattern or settings.frame_pattern

    if on_stage:
        on_stage(RenderStage.GRID)
    grid, frame_range = plan_render(request, settings)
    logger.info(
        "Rendering %s frames %d-%d of %d at %dx%d@%d",
        request.scene,
        frame_range.start_frame,
        frame_range.end_frame,
        grid.duration_frames,
        grid.width,
        grid.height,
        grid.fps,
    )

    if on_stage:
        on_stage(RenderStage.RENDERING)
    props = {"script": request.script, "timeline": request.timeline, **request.props}
    result = render_frames(
        request.scene,
        grid,
        surface,
        frames_dir,
        start_frame=frame_range.start_frame,
        end_frame=frame_range.end_frame,
        frame_pattern=frame_pattern,
        workers=request.workers or settings.render_workers or None,
        props=props,
        device_scale_factor=settings.device_scale_factor,
        on_frame=on_frame,
        cancel_event=cancel_event,
    )
    if not result.frames:
        raise EmptyFrameSequenceError()
    if cancel_event is not None and cancel_event.is_set():
        raise RenderCancelledError("Render cancelled before encoding")

    if on_stage:
        on_stage(RenderStage.ENCODING)
    scale = settings.device_scale_factor
    encode = encoder.encode(
        EncodeOptions(
            frames_dir=str(frames_dir),
            fps=grid.fps,
            output_path=str(output_path),
            audio_path=request.audio_path,
            frame_pattern=frame_pattern,
            start_frame=frame_range.start_frame,
            frame_count=len(frame_range),
            total_frames=len(result),
            width=round(grid.width * scale),
            height=round(grid.height * scale),
        ),
        encode_progress,
    )
    return RenderVideoResult(frames=result.frames, output_path=encode.output_path, encode=encode)
