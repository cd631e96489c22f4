"""Audio generation request and asset models."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator


class AudioAsset(BaseModel):
    """A generated audio file whose duration is authoritative."""

    path: str = Field(..., min_length=1)
    duration_sec: float = Field(..., ge=0, description="Real playable duration in seconds")
    seed: int | None = None


class SpeechRequest(BaseModel):
    """Text-to-speech request."""

    text: str
    voice: str | None = None
    model: str | None = None
    sample_rate_hz: int = Field(default=44100, gt=0)
    extra: dict = Field(default_factory=dict)


class SoundEffectRequest(BaseModel):
    """Sound-effect generation request."""

    prompt: str
    duration_sec: float | None = Field(default=None, gt=0)
    sample_rate_hz: int = Field(default=44100, gt=0)
    seed: int | None = None
    extra: dict = Field(default_factory=dict)


class MusicRequest(BaseModel):
    """Music generation request."""

    prompt: str
    duration_seconds: float = Field(..., gt=0)
    sample_rate_hz: int = Field(default=44100, gt=0)
    seed: int | None = None
    model_id: str | None = None
    force_instrumental: bool | None = None
    extra: dict = Field(default_factory=dict)


class AudioClipSpec(BaseModel):
    """A sound effect or music clip placed on the audio timeline."""

    id: str = Field(..., min_length=1)
    kind: Literal["sfx", "music"]
    prompt: str = Field(..., min_length=1)
    start_sec: float = Field(default=0.0, ge=0)
    duration_sec: float | None = Field(
        default=None, gt=0, description="Music defaults to the rest of the composition"
    )
    volume: float = Field(default=1.0, ge=0)
    variants: int = Field(default=1, ge=1)
    pick: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def pick_within_variants(self):
        if self.pick >= self.variants:
            raise ValueError(
                f"{self.kind} pick out of range for {self.id!r} "
                f"(pick={self.pick}, variants={self.variants})"
            )
        return self


class AudioPlan(BaseModel):
    """How to voice a script and which clips to add around the narration."""

    speech_provider: str = Field(default="dry-run", min_length=1)
    sfx_provider: str | None = Field(default="dry-run")
    music_provider: str | None = Field(default="dry-run")
    voice: str | None = None
    sample_rate_hz: int = Field(default=44100, gt=0)
    lead_in_sec: float = Field(default=0.0, ge=0)
    pause_between_cues_sec: float = Field(default=0.0, ge=0)
    clips: list[AudioClipSpec] = Field(default_factory=list)


class GeneratedAudio(BaseModel):
    """Result of the audio stage: retimed script, timeline and narration track."""

    script: dict
    timeline: dict
    narration: AudioAsset
    duration_sec: float = Field(..., ge=0)
    skipped_clips: list[str] = Field(default_factory=list)


class GenerateRequest(BaseModel):
    """Body of the audio generation endpoint."""

    script: dict = Field(default_factory=dict)
    audio: AudioPlan = Field(default_factory=AudioPlan)
