"""ElevenLabs speech, sound-effect and music providers over httpx.

All request bounds are validated before any network call is made.
"""

import logging
from pathlib import Path
from typing import Any

import httpx

from framecast.audio.base import MusicProvider, SoundEffectProvider, SpeechProvider
from framecast.audio.probe import audio_activity_ratio, probe_duration_sec
from framecast.audio.wav import write_pcm_wav
from framecast.models.audio import AudioAsset, MusicRequest, SoundEffectRequest, SpeechRequest
from framecast.models.errors import ProviderError
from framecast.timing.frame_time import round_half_up

logger = logging.getLogger(__name__)

PROVIDER = "elevenlabs"
DEFAULT_BASE_URL = "https://api.elevenlabs.io"

MIN_SAMPLE_RATE = 8000
MAX_SAMPLE_RATE = 48000
MP3_SAMPLE_RATES = (22050, 24000, 44100)
SFX_MIN_SEC = 0.5
SFX_MAX_SEC = 30.0
MUSIC_MIN_MS = 3000
MUSIC_MAX_MS = 600000
MIN_ACTIVITY_RATIO = 0.01


def default_output_format(sample_rate: int) -> str:
    if sample_rate in MP3_SAMPLE_RATES:
        return f"mp3_{sample_rate}_128"
    return "mp3_44100_128"


def validate_sample_rate(sample_rate: int) -> None:
    if not MIN_SAMPLE_RATE <= sample_rate <= MAX_SAMPLE_RATE:
        raise ProviderError(
            f"ElevenLabs sample rate must be between {MIN_SAMPLE_RATE} and {MAX_SAMPLE_RATE} Hz",
            provider=PROVIDER,
            details={"sample_rate_hz": sample_rate},
        )


class ElevenLabsClient:
    """Posts JSON to the ElevenLabs API and returns the audio body."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 120.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def post_audio(
        self,
        kind: str,
        path: str,
        payload: dict[str, Any],
        *,
        accept: str = "audio/mpeg",
        params: dict[str, Any] | None = None,
        error_limit: int = 400,
    ) -> bytes:
        if not self.api_key:
            raise ProviderError(f"ElevenLabs {kind} requires an API key", provider=PROVIDER)
        headers = {"xi-api-key": self.api_key, "accept": accept}
        try:
            with httpx.Client(
                base_url=self.base_url, timeout=self.timeout, transport=self.transport
            ) as client:
                response = client.post(path, json=payload, headers=headers, params=params)
        except httpx.HTTPError as e:
            raise ProviderError(
                f"ElevenLabs {kind} request failed: {e}", provider=PROVIDER, details={"path": path}
            )
        if not response.is_success:
            raise ProviderError(
                f"ElevenLabs {kind} failed ({response.status_code}): {response.text[:error_limit]}",
                provider=PROVIDER,
                details={"status_code": response.status_code},
            )
        return response.content


class ElevenLabsSpeechProvider(SpeechProvider):
    name = PROVIDER

    def __init__(
        self,
        client: ElevenLabsClient,
        voice_id: str = "",
        model_id: str = "eleven_multilingual_v2",
        output_format: str | None = None,
        voice_settings: dict[str, Any] | None = None,
        pronunciation_dictionary_locators: list[dict[str, Any]] | None = None,
    ):
        self.client = client
        self.voice_id = voice_id
        self.model_id = model_id
        self.output_format = output_format or None
        self.voice_settings = voice_settings
        self.pronunciation_dictionary_locators = pronunciation_dictionary_locators

    def validate(self, request: SpeechRequest) -> str:
        voice_id = request.voice or self.voice_id
        if not voice_id:
            raise ProviderError("ElevenLabs speech requires a voice id", provider=PROVIDER)
        if not request.text or not request.text.strip():
            raise ProviderError("ElevenLabs speech requires non-empty text", provider=PROVIDER)
        validate_sample_rate(request.sample_rate_hz)
        return voice_id

    def resolve_output_format(self, request: SpeechRequest) -> str:
        return self.output_format or default_output_format(request.sample_rate_hz)

    def file_extension(self, request: SpeechRequest) -> str:
        return ".wav" if self.resolve_output_format(request).startswith("pcm_") else ".mp3"

    def generate(self, request: SpeechRequest, out_path: Path) -> AudioAsset:
        voice_id = self.validate(request)
        output_format = self.resolve_output_format(request)

        payload: dict[str, Any] = {"text": request.text, "model_id": request.model or self.model_id}
        if self.voice_settings:
            payload["voice_settings"] = self.voice_settings
        locators = request.extra.get(
            "pronunciation_dictionary_locators", self.pronunciation_dictionary_locators
        )
        if locators:
            payload["pronunciation_dictionary_locators"] = locators

        audio = self.client.post_audio(
            "speech",
            f"/v1/text-to-speech/{voice_id}/stream",
            payload,
            params={"output_format": output_format},
        )

        out_path.parent.mkdir(parents=True, exist_ok=True)
        if output_format.startswith("pcm_"):
            duration = write_pcm_wav(out_path, audio, request.sample_rate_hz)
            return AudioAsset(path=str(out_path), duration_sec=duration)

        out_path.write_bytes(audio)
        duration = probe_duration_sec(out_path)
        probe_sec = min(3.0, max(0.25, duration))
        activity = audio_activity_ratio(out_path, probe_sec)
        if activity < MIN_ACTIVITY_RATIO:
            raise ProviderError(
                f"ElevenLabs returned unusable audio (activity_ratio={activity:.4f})",
                provider=PROVIDER,
                details={"path": str(out_path)},
            )
        return AudioAsset(path=str(out_path), duration_sec=duration)


class ElevenLabsSoundEffectProvider(SoundEffectProvider):
    name = PROVIDER

    def __init__(
        self,
        client: ElevenLabsClient,
        model_id: str = "eleven_text_to_sound_v2",
        prompt_influence: float | None = None,
        loop: bool | None = None,
    ):
        self.client = client
        self.model_id = model_id
        self.prompt_influence = prompt_influence
        self.loop = loop

    def validate(self, request: SoundEffectRequest) -> None:
        if not request.prompt or not request.prompt.strip():
            raise ProviderError("ElevenLabs SFX requires a non-empty prompt", provider=PROVIDER)
        duration = request.duration_sec
        if duration is not None and not SFX_MIN_SEC <= duration <= SFX_MAX_SEC:
            raise ProviderError(
                f"ElevenLabs SFX duration_seconds must be between {SFX_MIN_SEC:g} "
                f"and {SFX_MAX_SEC:g} seconds",
                provider=PROVIDER,
                details={"duration_sec": duration},
            )
        validate_sample_rate(request.sample_rate_hz)

    def file_extension(self, request: SoundEffectRequest) -> str:
        return ".mp3"

    def generate(self, request: SoundEffectRequest, out_path: Path) -> AudioAsset:
        self.validate(request)
        payload: dict[str, Any] = {"text": request.prompt, "model_id": self.model_id}
        if request.duration_sec is not None:
            payload["duration_seconds"] = request.duration_sec
        if self.prompt_influence is not None:
            payload["prompt_influence"] = self.prompt_influence
        if self.loop is not None:
            payload["loop"] = self.loop

        audio = self.client.post_audio("SFX", "/v1/sound-generation", payload)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(audio)
        return AudioAsset(
            path=str(out_path), duration_sec=probe_duration_sec(out_path), seed=request.seed
        )


class ElevenLabsMusicProvider(MusicProvider):
    name = PROVIDER

    def __init__(self, client: ElevenLabsClient, model_id: str = "music_v1"):
        self.client = client
        self.model_id = model_id

    def validate(self, request: MusicRequest) -> int:
        """Return the requested length in milliseconds once it is within bounds."""
        if not request.prompt or not request.prompt.strip():
            raise ProviderError("ElevenLabs music requires a non-empty prompt", provider=PROVIDER)
        length_ms = round_half_up(request.duration_seconds * 1000)
        if not MUSIC_MIN_MS <= length_ms <= MUSIC_MAX_MS:
            raise ProviderError(
                "ElevenLabs music duration_seconds must be between "
                f"{MUSIC_MIN_MS // 1000} and {MUSIC_MAX_MS // 1000} seconds",
                provider=PROVIDER,
                details={"duration_seconds": request.duration_seconds},
            )
        validate_sample_rate(request.sample_rate_hz)
        return length_ms

    def file_extension(self, request: MusicRequest) -> str:
        return ".mp3"

    def generate(self, request: MusicRequest, out_path: Path) -> AudioAsset:
        length_ms = self.validate(request)
        payload: dict[str, Any] = {
            "prompt": request.prompt,
            "music_length_ms": length_ms,
            "model_id": request.model_id or self.model_id,
        }
        if request.seed is not None:
            payload["seed"] = request.seed
        if request.force_instrumental is not None:
            payload["force_instrumental"] = request.force_instrumental

        audio = self.client.post_audio(
            "music", "/v1/music", payload, accept="audio/*", error_limit=500
        )
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(audio)
        duration = probe_duration_sec(out_path)
        logger.info("Generated %.2fs of music into %s", duration, out_path)
        return AudioAsset(path=str(out_path), duration_sec=duration, seed=request.seed)
