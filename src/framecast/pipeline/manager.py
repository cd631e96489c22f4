"""Render manager: job bookkeeping around the render pipeline."""

import logging
import threading
import uuid
from datetime import UTC, datetime
from pathlib import Path

from framecast.config import Settings, get_settings
from framecast.models.errors import FramecastError, RenderCancelledError
from framecast.models.pipeline import RenderJobState, RenderRequest, RenderStage
from framecast.models.render import RenderedFrame
from framecast.pipeline.generate import resolve_request_audio
from framecast.pipeline.render import plan_render, render_video
from framecast.rendering.engine import VideoEncoder
from framecast.rendering.surface import RenderSurface
from framecast.storage.frame_store import FrameStore

logger = logging.getLogger(__name__)

# Progress bands per stage
_AUDIO = 0.02
_GRID = 0.05
_RENDER_START = 0.1
_RENDER_SPAN = 0.7
_ENCODE_START = 0.8
_ENCODE_SPAN = 0.19

_TERMINAL = {RenderStage.COMPLETE, RenderStage.FAILED, RenderStage.CANCELLED}


class RenderManager:
    """Creates, runs, tracks and cancels render jobs."""

    def __init__(
        self,
        surface: RenderSurface | None = None,
        encoder: VideoEncoder | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.frame_store = FrameStore(self.settings.work_dir)
        self.surface = surface
        self.encoder = encoder or VideoEncoder(self.settings)
        self._jobs: dict[str, RenderJobState] = {}
        self._cancel_events: dict[str, threading.Event] = {}
        self._running: set[str] = set()
        self._lock = threading.Lock()
        self._slots = threading.BoundedSemaphore(max(1, self.settings.max_concurrent_jobs))

    def create_job(self) -> RenderJobState:
        """Create a new render job."""
        self.frame_store.cleanup_expired(self.settings.frame_ttl_seconds, skip=self.active_jobs())
        job_id = str(uuid.uuid4())
        now = datetime.now(UTC)
        state = RenderJobState(job_id=job_id, started_at=now, updated_at=now)
        self._jobs[job_id] = state
        self._cancel_events[job_id] = threading.Event()
        return state

    def active_jobs(self) -> set[str]:
        """Jobs whose frames are still in use: running, or not yet finished."""
        with self._lock:
            pending = {jid for jid, state in self._jobs.items() if state.stage not in _TERMINAL}
            return pending | self._running

    def get_job_state(self, job_id: str) -> RenderJobState | None:
        return self._jobs.get(job_id)

    def cancel_job(self, job_id: str) -> bool:
        """Signal a job to stop; running workers finish their current frame first."""
        if job_id not in self._jobs:
            return False
        self._cancel_events[job_id].set()
        if self._jobs[job_id].stage not in _TERMINAL:
            self._update_state(job_id, RenderStage.CANCELLED, message="Job cancelled")
        return True

    def process(self, job_id: str, request: RenderRequest) -> RenderJobState:
        """Run a render job to completion.

        Strict ordering: audio (when planned) -> grid -> frames -> encode.
        Frames are removed after a successful encode unless ``keep_frames``
        is set; a failed job keeps whatever frames were written.
        """
        if job_id not in self._jobs:
            raise FramecastError(f"Job {job_id} not found", component="pipeline")

        cancel_event = self._cancel_events[job_id]
        if cancel_event.is_set():
            raise RenderCancelledError("Job was cancelled before it started")

        with self._slots:
            with self._lock:
                self._running.add(job_id)
            try:
                return self._run(job_id, request, cancel_event)
            finally:
                with self._lock:
                    self._running.discard(job_id)

    def _run(
        self, job_id: str, request: RenderRequest, cancel_event: threading.Event
    ) -> RenderJobState:
        state = self._jobs[job_id]
        output_dir = Path(self.settings.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / f"{job_id}.mp4"

        def on_stage(stage: RenderStage):
            progress = {
                RenderStage.AUDIO: _AUDIO,
                RenderStage.GRID: _GRID,
                RenderStage.RENDERING: _RENDER_START,
                RenderStage.ENCODING: _ENCODE_START,
            }.get(stage)
            self._update_state(job_id, stage, progress, f"Stage: {stage.value}")

        def on_frame(frame: RenderedFrame):
            with self._lock:
                state.frames_rendered += 1
                done = state.frames_rendered
            if cancel_event.is_set():
                return
            fraction = done / total if total else 1.0
            self._update_state(
                job_id,
                RenderStage.RENDERING,
                _RENDER_START + fraction * _RENDER_SPAN,
                f"Rendered {done}/{total} frames",
            )

        def on_encode_progress(progress: float):
            self._update_state(
                job_id,
                RenderStage.ENCODING,
                _ENCODE_START + progress * _ENCODE_SPAN,
                f"Encoding: {progress * 100:.0f}%",
            )

        try:
            request = resolve_request_audio(
                request, output_dir / f"{job_id}.wav", settings=self.settings, on_stage=on_stage
            )
            if cancel_event.is_set():
                raise RenderCancelledError("Render cancelled after the audio stage")
            _grid, frame_range = plan_render(request, self.settings)
            total = len(frame_range)
            frames_dir = self.frame_store.frames_dir(job_id)
            state.frames_dir = str(frames_dir)
            state.total_frames = total

            result = render_video(
                request,
                frames_dir,
                output_path,
                surface=self.surface,
                encoder=self.encoder,
                settings=self.settings,
                on_stage=on_stage,
                on_frame=on_frame,
                encode_progress=on_encode_progress,
                cancel_event=cancel_event,
            )
        except RenderCancelledError as e:
            self._update_state(job_id, RenderStage.CANCELLED, message=e.message)
            raise
        except FramecastError as e:
            self._update_state(job_id, RenderStage.FAILED, message=e.message)
            raise
        except Exception as e:
            self._update_state(job_id, RenderStage.FAILED, message=str(e))
            raise FramecastError(f"Render failed: {e}", component="pipeline")

        self._update_state(job_id, RenderStage.COMPLETE, 1.0, "Render complete!")
        state.output_path = result.output_path
        state.completed_at = datetime.now(UTC)

        if not self.settings.keep_frames:
            self.frame_store.cleanup_job(job_id)
            state.frames_dir = None

        return state

    def _update_state(
        self, job_id: str, stage: RenderStage, progress: float | None = None, message: str = ""
    ):
        """Update job state."""
        if job_id not in self._jobs:
            return
        state = self._jobs[job_id]
        with self._lock:
            if state.stage == RenderStage.CANCELLED and stage != RenderStage.CANCELLED:
                return
            state.stage = stage
            if progress is not None:
                state.progress = min(1.0, max(state.progress, progress))
            state.message = message
            state.updated_at = datetime.now(UTC)
            if stage == RenderStage.FAILED:
                state.error = message

    def delete_job_data(self, job_id: str) -> None:
        """Delete all data for a job."""
        self.frame_store.cleanup_job(job_id)
        self._jobs.pop(job_id, None)
        self._cancel_events.pop(job_id, None)
