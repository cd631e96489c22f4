"""Celery task definitions."""

from celery import Celery

from framecast.config import get_settings
from framecast.models.errors import FramecastError
from framecast.models.pipeline import RenderRequest

settings = get_settings()

celery_app = Celery(
    "framecast",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
)


@celery_app.task(bind=True, name="framecast.render_video")
def render_video_task(self, request: dict, job_id: str | None = None):
    """Celery task wrapping RenderManager.process()."""
    from framecast.pipeline.manager import RenderManager

    manager = RenderManager()
    state = manager.get_job_state(job_id) if job_id else None
    if state is None:
        state = manager.create_job()
    job_id = state.job_id

    try:
        result = manager.process(job_id, RenderRequest.model_validate(request))
        return {
            "job_id": result.job_id,
            "status": result.stage.value,
            "output_path": result.output_path,
            "frames_rendered": result.frames_rendered,
        }
    except FramecastError as e:
        return {
            "job_id": job_id,
            "status": manager.get_job_state(job_id).stage.value,
            "error": e.message,
            "component": e.component,
        }
