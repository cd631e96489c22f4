"""Render endpoints."""

from pathlib import Path

from fastapi import APIRouter, BackgroundTasks, Depends

from framecast.api.dependencies import get_app_settings, get_render_manager
from framecast.audio.registry import get_speech_provider
from framecast.config import Settings
from framecast.models.errors import ValidationError
from framecast.models.pipeline import RenderRequest
from framecast.pipeline.manager import RenderManager
from framecast.pipeline.render import plan_render
from framecast.rendering.workers import validate_frame_pattern
from framecast.scene.base import get_scene

router = APIRouter(prefix="/api/v1", tags=["render"])


@router.post("/render")
async def start_render(
    request: RenderRequest,
    background_tasks: BackgroundTasks,
    manager: RenderManager = Depends(get_render_manager),
    settings: Settings = Depends(get_app_settings),
):
    """Validate a render request and start it in the background."""
    get_scene(request.scene)
    validate_frame_pattern(request.frame_pattern or settings.frame_pattern)
    if request.audio_path and not Path(request.audio_path).exists():
        raise ValidationError(f"Audio file not found: {request.audio_path}")
    if request.audio is not None:
        # The grid depends on the generated narration; only check the provider here
        get_speech_provider(request.audio.speech_provider, settings)
        state = manager.create_job()
        background_tasks.add_task(manager.process, job_id=state.job_id, request=request)
        return {
            "job_id": state.job_id,
            "status": "generating_audio",
            "message": "Audio generation started",
            "grid": None,
            "start_frame": None,
            "end_frame": None,
        }

    grid, frame_range = plan_render(request, settings)
    if frame_range.is_empty:
        raise ValidationError(
            f"Requested frame range is empty for a {grid.duration_frames} frame composition",
            details={"duration_frames": grid.duration_frames},
        )

    state = manager.create_job()
    state.total_frames = len(frame_range)
    background_tasks.add_task(manager.process, job_id=state.job_id, request=request)

    return {
        "job_id": state.job_id,
        "status": "rendering",
        "message": "Render started",
        "grid": grid.model_dump(),
        "start_frame": frame_range.start_frame,
        "end_frame": frame_range.end_frame,
    }


@router.delete("/render/{job_id}")
async def cancel_render(
    job_id: str,
    manager: RenderManager = Depends(get_render_manager),
):
    """Cancel a running render job."""
    cancelled = manager.cancel_job(job_id)
    if not cancelled:
        raise ValidationError(f"Job {job_id} not found")
    return {"job_id": job_id, "status": "cancelled"}
