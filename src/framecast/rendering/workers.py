"""Frame worker pool.

The requested frame range is split into contiguous blocks, one per worker
thread. Each worker mounts its own scene root and opens its own surface
page, so no animation state is shared between workers. A worker drives its
scene to each frame of its block in turn, captures the frame and writes it
under the shared filename pattern.

Frames are independent: the bytes written for frame ``i`` depend only on
``i`` and the scene's props, never on which worker rendered it or in what
order.
"""

import asyncio
import logging
import os
import re
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from framecast.config import Settings, get_settings
from framecast.models.errors import (
    ConfigurationError,
    FramecastError,
    FrameCaptureError,
    RenderCancelledError,
    RenderingError,
)
from framecast.models.grid import FrameRange, VideoGrid
from framecast.models.render import RenderedFrame, RenderFramesResult
from framecast.rendering.surface import RenderSurface
from framecast.scene.base import SceneFactory, get_scene
from framecast.timing.grid import resolve_frame_range

logger = logging.getLogger(__name__)

MAX_WORKERS = 32

_DIRECTIVE = re.compile(r"%(?:0(\d+))?d")

FrameCallback = Callable[[RenderedFrame], None]


def validate_frame_pattern(pattern: str) -> str:
    """Require exactly one ``%d`` or ``%0Nd`` directive and no other ``%``."""
    if len(_DIRECTIVE.findall(pattern)) != 1 or pattern.count("%") != 1:
        raise ConfigurationError(
            f"Frame pattern must contain exactly one %d or %0Nd directive: {pattern!r}",
            details={"frame_pattern": pattern},
        )
    if "/" in pattern or "\\" in pattern:
        raise ConfigurationError(
            f"Frame pattern must be a file name, not a path: {pattern!r}",
            details={"frame_pattern": pattern},
        )
    return pattern


def format_frame_name(pattern: str, index: int) -> str:
    """Expand ``pattern`` for frame ``index`` the way ffmpeg's image2 demuxer reads it."""
    validate_frame_pattern(pattern)

    def expand(match: re.Match) -> str:
        width = match.group(1)
        return str(index).zfill(int(width)) if width else str(index)

    return _DIRECTIVE.sub(expand, pattern, count=1)


def frame_glob(pattern: str) -> str:
    """Glob matching every file name ``pattern`` can produce."""
    validate_frame_pattern(pattern)
    return _DIRECTIVE.sub("*", pattern, count=1)


def frame_index_from_name(pattern: str, name: str) -> int | None:
    """Inverse of ``format_frame_name``; None when ``name`` does not match ``pattern``."""
    validate_frame_pattern(pattern)
    match = _DIRECTIVE.search(pattern)
    prefix, suffix = pattern[: match.start()], pattern[match.end() :]
    found = re.fullmatch(re.escape(prefix) + r"(\d+)" + re.escape(suffix), name)
    return int(found.group(1)) if found else None


def partition_frame_range(first: int, last: int, workers: int) -> list[FrameRange]:
    """Split ``[first, last]`` into at most ``workers`` contiguous non-empty blocks.

    Blocks are disjoint, cover the range exactly and differ in length by at
    most one frame.
    """
    total = last - first + 1
    if total <= 0:
        return []
    count = max(1, min(workers, total))
    base, extra = divmod(total, count)
    blocks = []
    start = first
    for i in range(count):
        size = base + (1 if i < extra else 0)
        blocks.append(FrameRange(start_frame=start, end_frame=start + size - 1))
        start += size
    return blocks


def default_worker_count(settings: Settings | None = None) -> int:
    settings = settings or get_settings()
    if settings.render_workers > 0:
        return settings.render_workers
    return min(MAX_WORKERS, os.cpu_count() or 4)


@dataclass
class _PoolContext:
    scene_cls: SceneFactory
    grid: VideoGrid
    surface: RenderSurface
    out_dir: Path
    frame_pattern: str
    props: dict[str, Any]
    device_scale_factor: float
    on_frame: FrameCallback | None
    abort: threading.Event
    cancel_event: threading.Event | None

    def should_stop(self) -> bool:
        if self.abort.is_set():
            return True
        return self.cancel_event is not None and self.cancel_event.is_set()


async def _render_block_async(ctx: _PoolContext, block: FrameRange) -> list[RenderedFrame]:
    rendered: list[RenderedFrame] = []
    root = ctx.scene_cls(ctx.grid, ctx.props)
    try:
        try:
            await root.mount(block.start_frame)
        except FramecastError:
            raise
        except Exception as e:
            raise RenderingError(
                f"Failed to mount scene for frames {block.start_frame}-{block.end_frame}: {e}",
                details={"start_frame": block.start_frame, "end_frame": block.end_frame},
            ) from e

        async with ctx.surface.open(
            ctx.grid.width, ctx.grid.height, ctx.device_scale_factor
        ) as page:
            for index in block.indices():
                if ctx.should_stop():
                    logger.debug("Worker stopping before frame %d", index)
                    break
                root.set_frame(index)
                path = ctx.out_dir / format_frame_name(ctx.frame_pattern, index)
                try:
                    data = await page.capture(root.render_document())
                    path.write_bytes(data)
                except Exception as e:
                    raise FrameCaptureError(index, e) from e

                frame = RenderedFrame(index=index, path=str(path))
                rendered.append(frame)
                logger.debug("Captured frame %d -> %s", index, path.name)
                if ctx.on_frame:
                    try:
                        ctx.on_frame(frame)
                    except Exception as e:
                        raise FrameCaptureError(index, e) from e
    finally:
        root.unmount()
    return rendered


def _render_block(ctx: _PoolContext, block: FrameRange) -> list[RenderedFrame]:
    # Each worker thread runs its own event loop for the scene mount and captures
    return asyncio.run(_render_block_async(ctx, block))


def render_frames(
    scene: str | SceneFactory,
    grid: VideoGrid,
    surface: RenderSurface,
    out_dir: str | Path,
    *,
    start_frame: int | None = None,
    end_frame: int | None = None,
    frame_pattern: str = "frame-%06d.png",
    workers: int | None = None,
    props: dict[str, Any] | None = None,
    device_scale_factor: float = 1.0,
    on_frame: FrameCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> RenderFramesResult:
    """Render ``[start_frame, end_frame]`` of ``scene`` into ``out_dir``.

    ``on_frame`` is called from worker threads as each frame is written; it
    does not affect the order of the result, which is always sorted by
    frame index. An exception from ``on_frame`` fails the render like a
    capture failure of that frame.

    Raises:
        FrameCaptureError: A frame failed to capture, or ``on_frame`` raised
            for it. Remaining workers
            are stopped and released before this propagates.
        RenderCancelledError: ``cancel_event`` was set before every
            frame was written.
    """
    validate_frame_pattern(frame_pattern)
    scene_cls = get_scene(scene) if isinstance(scene, str) else scene
    frame_range = resolve_frame_range(grid, start_frame, end_frame)

    output = Path(out_dir)
    output.mkdir(parents=True, exist_ok=True)

    if frame_range.is_empty:
        logger.warning(
            "Frame range %s-%s is empty for a %d frame grid",
            start_frame,
            end_frame,
            grid.duration_frames,
        )
        return RenderFramesResult(frames=[])

    worker_count = workers if workers and workers > 0 else default_worker_count()
    blocks = partition_frame_range(frame_range.start_frame, frame_range.end_frame, worker_count)
    ctx = _PoolContext(
        scene_cls=scene_cls,
        grid=grid,
        surface=surface,
        out_dir=output,
        frame_pattern=frame_pattern,
        props=props or {},
        device_scale_factor=device_scale_factor,
        on_frame=on_frame,
        abort=threading.Event(),
        cancel_event=cancel_event,
    )

    logger.info(
        "Rendering frames %d-%d with %d workers",
        frame_range.start_frame,
        frame_range.end_frame,
        len(blocks),
    )

    frames: list[RenderedFrame] = []
    failure: BaseException | None = None
    with ThreadPoolExecutor(
        max_workers=len(blocks), thread_name_prefix="framecast-render"
    ) as pool:
        futures = {pool.submit(_render_block, ctx, block): block for block in blocks}
        for future in as_completed(futures):
            try:
                frames.extend(future.result())
            except Exception as e:
                ctx.abort.set()
                block = futures[future]
                logger.error(
                    "Worker for frames %d-%d failed: %s", block.start_frame, block.end_frame, e
                )
                if failure is None:
                    failure = e

    if failure is not None:
        raise failure

    frames.sort(key=lambda f: f.index)
    expected = len(frame_range)
    if cancel_event is not None and cancel_event.is_set() and len(frames) < expected:
        raise RenderCancelledError(
            f"Render cancelled after {len(frames)} of {expected} frames",
            details={"frames_rendered": len(frames), "total_frames": expected},
        )

    logger.info("Rendered %d frames into %s", len(frames), output)
    return RenderFramesResult(frames=frames)
