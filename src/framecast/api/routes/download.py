"""Download endpoint."""

from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from framecast.api.dependencies import get_render_manager
from framecast.models.errors import ValidationError
from framecast.models.pipeline import RenderStage
from framecast.pipeline.manager import RenderManager

router = APIRouter(prefix="/api/v1", tags=["download"])


@router.get("/download/{job_id}")
async def download_output(
    job_id: str,
    manager: RenderManager = Depends(get_render_manager),
):
    """Download the encoded video."""
    state = manager.get_job_state(job_id)
    if not state:
        raise ValidationError(f"Job {job_id} not found")

    if state.stage != RenderStage.COMPLETE:
        raise ValidationError(f"Job is not complete (current stage: {state.stage.value})")

    if not state.output_path or not Path(state.output_path).exists():
        raise ValidationError("Output file not found")

    return FileResponse(
        path=state.output_path,
        media_type="video/mp4",
        filename=f"framecast_{job_id}.mp4",
    )
