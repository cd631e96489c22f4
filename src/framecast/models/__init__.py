"""Data models for framecast."""

from framecast.models.audio import (
    AudioAsset,
    AudioClipSpec,
    AudioPlan,
    GeneratedAudio,
    GenerateRequest,
    MusicRequest,
    SoundEffectRequest,
    SpeechRequest,
)
from framecast.models.errors import (
    ConfigurationError,
    EmptyFrameSequenceError,
    EncodeError,
    ErrorResponse,
    FramecastError,
    FrameCaptureError,
    ProviderError,
    RenderCancelledError,
    RenderingError,
    ValidationError,
)
from framecast.models.grid import DerivedVideoConfig, FrameRange, VideoGrid
from framecast.models.pipeline import PreviewOptions, RenderJobState, RenderRequest, RenderStage
from framecast.models.render import (
    EncodeOptions,
    EncodeResult,
    RenderedFrame,
    RenderFramesResult,
    RenderVideoResult,
)

__all__ = [
    "AudioAsset",
    "AudioClipSpec",
    "AudioPlan",
    "ConfigurationError",
    "DerivedVideoConfig",
    "EmptyFrameSequenceError",
    "EncodeError",
    "EncodeOptions",
    "EncodeResult",
    "ErrorResponse",
    "FrameCaptureError",
    "FrameRange",
    "FramecastError",
    "GenerateRequest",
    "GeneratedAudio",
    "MusicRequest",
    "PreviewOptions",
    "ProviderError",
    "RenderCancelledError",
    "RenderFramesResult",
    "RenderJobState",
    "RenderRequest",
    "RenderStage",
    "RenderVideoResult",
    "RenderedFrame",
    "RenderingError",
    "SoundEffectRequest",
    "SpeechRequest",
    "ValidationError",
    "VideoGrid",
]
