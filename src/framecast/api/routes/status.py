"""Status endpoint."""

from fastapi import APIRouter, Depends

from framecast.api.dependencies import get_render_manager
from framecast.models.errors import ValidationError
from framecast.pipeline.manager import RenderManager

router = APIRouter(prefix="/api/v1", tags=["status"])


@router.get("/status/{job_id}")
async def get_status(
    job_id: str,
    manager: RenderManager = Depends(get_render_manager),
):
    """Get the render status of a job."""
    state = manager.get_job_state(job_id)
    if not state:
        raise ValidationError(f"Job {job_id} not found")

    return {
        "job_id": state.job_id,
        "stage": state.stage.value,
        "progress": state.progress,
        "message": state.message,
        "frames_rendered": state.frames_rendered,
        "total_frames": state.total_frames,
        "started_at": state.started_at.isoformat() if state.started_at else None,
        "updated_at": state.updated_at.isoformat() if state.updated_at else None,
        "completed_at": state.completed_at.isoformat() if state.completed_at else None,
        "error": state.error,
        "output_path": state.output_path,
    }
