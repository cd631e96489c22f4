"""Render job state and request models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, model_validator

from framecast.models.audio import AudioPlan


class RenderStage(StrEnum):
    """Stages of a render job."""

    QUEUED = "queued"
    AUDIO = "audio"
    GRID = "grid"
    RENDERING = "rendering"
    ENCODING = "encoding"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PreviewOptions(BaseModel):
    """Render a short low-fps excerpt for fast iteration."""

    offset_sec: float = Field(default=0.0, ge=0)
    duration_sec: float = Field(default=2.0, gt=0)
    fps: int = Field(default=15, gt=0)


class RenderRequest(BaseModel):
    """Everything a render job needs besides the job id."""

    script: dict = Field(default_factory=dict, description="Composition script data")
    timeline: dict | None = Field(default=None, description="Audio timeline data")
    scene: str = Field(default="captions", min_length=1, description="Registered scene name")
    props: dict = Field(default_factory=dict)
    fps: int | None = Field(default=None, gt=0)
    width: int | None = Field(default=None, gt=0)
    height: int | None = Field(default=None, gt=0)
    duration_frames: int | None = Field(default=None, ge=1)
    start_frame: int | None = Field(default=None, ge=0)
    end_frame: int | None = Field(default=None, ge=0)
    workers: int | None = Field(default=None, ge=1)
    audio_path: str | None = None
    audio: AudioPlan | None = Field(
        default=None, description="Generate narration, SFX and music before rendering"
    )
    frame_pattern: str | None = None
    preview: PreviewOptions | None = None

    @model_validator(mode="after")
    def one_audio_source(self):
        if self.audio is not None and self.audio_path:
            raise ValueError("audio_path and audio are mutually exclusive")
        return self


class RenderJobState(BaseModel):
    """Current state of a render job."""

    job_id: str = Field(..., min_length=1)
    stage: RenderStage = Field(default=RenderStage.QUEUED)
    progress: float = Field(default=0.0, ge=0, le=1)
    message: str = Field(default="")
    started_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None
    error: str | None = None
    frames_dir: str | None = None
    frames_rendered: int = Field(default=0, ge=0)
    total_frames: int = Field(default=0, ge=0)
    output_path: str | None = None
