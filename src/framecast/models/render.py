"""Render and encode data models."""

from pydantic import BaseModel, Field


class RenderedFrame(BaseModel):
    """One captured frame written to disk."""

    index: int = Field(..., ge=0, description="Frame index")
    path: str = Field(..., min_length=1, description="Path to the captured image")


class RenderFramesResult(BaseModel):
    """Frames produced by the worker pool, sorted by index."""

    frames: list[RenderedFrame] = Field(default_factory=list)

    @property
    def indices(self) -> list[int]:
        return [f.index for f in self.frames]

    def __len__(self) -> int:
        return len(self.frames)


class EncodeOptions(BaseModel):
    """Inputs to the encode stage."""

    frames_dir: str = Field(..., min_length=1)
    fps: int = Field(..., gt=0)
    output_path: str = Field(..., min_length=1)
    audio_path: str | None = None
    frame_pattern: str = Field(default="frame-%06d.png")
    extra_args: list[str] = Field(default_factory=list)
    start_frame: int | None = Field(default=None, ge=0, description="First frame to encode")
    frame_count: int | None = Field(
        default=None, gt=0, description="Number of frames to encode from start_frame"
    )
    total_frames: int | None = Field(default=None, ge=0, description="Used for progress only")
    width: int | None = Field(default=None, gt=0, description="Expected frame image width")
    height: int | None = Field(default=None, gt=0, description="Expected frame image height")


class EncodeResult(BaseModel):
    """Result of an encode operation, validated with ffprobe."""

    output_path: str = Field(..., description="Path to encoded output file")
    duration: float = Field(..., ge=0, description="Output duration in seconds")
    file_size_bytes: int = Field(..., ge=0)
    video_codec: str = Field(default="h264")
    audio_codec: str | None = Field(default=None)
    width: int = Field(default=1280, gt=0)
    height: int = Field(default=720, gt=0)
    fps: float = Field(default=30.0, gt=0)

    @property
    def file_size_mb(self) -> float:
        return self.file_size_bytes / (1024 * 1024)


class RenderVideoResult(BaseModel):
    """Frames plus the encoded artifact of one render."""

    frames: list[RenderedFrame] = Field(default_factory=list)
    output_path: str
    encode: EncodeResult | None = None
