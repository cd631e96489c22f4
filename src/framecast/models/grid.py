"""Frame grid and frame range models."""

from pydantic import BaseModel, Field, model_validator


class VideoGrid(BaseModel):
    """Fixed temporal and spatial resolution of one render."""

    model_config = {"frozen": True}

    fps: int = Field(..., gt=0, description="Frames per second")
    width: int = Field(..., gt=0, description="Frame width in pixels")
    height: int = Field(..., gt=0, description="Frame height in pixels")
    duration_frames: int = Field(..., ge=1, description="Total frame count")

    @property
    def duration_sec(self) -> float:
        return self.duration_frames / self.fps

    @property
    def last_frame(self) -> int:
        return self.duration_frames - 1


class DerivedVideoConfig(BaseModel):
    """A grid together with the composition duration it was derived from."""

    grid: VideoGrid
    duration_sec: float = Field(..., ge=0)


class FrameRange(BaseModel):
    """Inclusive frame range ``[start_frame, end_frame]``; empty when end < start."""

    model_config = {"frozen": True}

    start_frame: int = Field(..., ge=0)
    end_frame: int = Field(..., ge=-1)

    @model_validator(mode="after")
    def validate_bounds(self) -> "FrameRange":
        if self.end_frame < self.start_frame - 1:
            raise ValueError(
                f"end_frame ({self.end_frame}) must be >= start_frame - 1 ({self.start_frame - 1})"
            )
        return self

    @property
    def is_empty(self) -> bool:
        return self.end_frame < self.start_frame

    def __len__(self) -> int:
        return max(0, self.end_frame - self.start_frame + 1)

    def indices(self) -> range:
        return range(self.start_frame, self.end_frame + 1)
