"""OpenAI text-to-speech provider."""

import logging
from pathlib import Path

import openai
from openai import OpenAI

from framecast.audio.base import SpeechProvider
from framecast.audio.wav import wav_duration_sec
from framecast.models.audio import AudioAsset, SpeechRequest
from framecast.models.errors import ProviderError

logger = logging.getLogger(__name__)

PROVIDER = "openai"
MIN_RESPONSE_BYTES = 100
ERROR_LIMIT = 400


class OpenAISpeechProvider(SpeechProvider):
    """Synthesizes WAV speech with ``client.audio.speech.create``."""

    name = PROVIDER

    def __init__(
        self,
        client: OpenAI | None = None,
        api_key: str = "",
        model: str = "gpt-4o-mini-tts",
        voice: str = "alloy",
        timeout: float = 120.0,
    ):
        self.client = client
        if self.client is None and api_key:
            self.client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self.model = model
        self.voice = voice

    def generate(self, request: SpeechRequest, out_path: Path) -> AudioAsset:
        if self.client is None:
            raise ProviderError("OpenAI speech requires an API key", provider=PROVIDER)
        if not request.text or not request.text.strip():
            raise ProviderError("OpenAI speech requires non-empty text", provider=PROVIDER)

        try:
            response = self.client.audio.speech.create(
                model=request.model or self.model,
                voice=request.voice or self.voice,
                input=request.text,
                response_format="wav",
            )
        except openai.APIStatusError as e:
            raise ProviderError(
                f"OpenAI speech failed ({e.status_code}): {e.response.text[:ERROR_LIMIT]}",
                provider=PROVIDER,
                details={"status_code": e.status_code},
            )
        except openai.APIError as e:
            raise ProviderError(f"OpenAI speech request failed: {e}", provider=PROVIDER)

        audio = response.content
        if len(audio) < MIN_RESPONSE_BYTES:
            raise ProviderError(
                f"OpenAI speech returned suspiciously short response ({len(audio)} bytes)",
                provider=PROVIDER,
            )
        if audio[:4] != b"RIFF":
            raise ProviderError(
                f"OpenAI speech returned invalid WAV (first bytes): {audio[:32].hex()}",
                provider=PROVIDER,
            )

        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(audio)
        duration = wav_duration_sec(out_path)
        logger.debug("OpenAI speech: %.3fs written to %s", duration, out_path)
        return AudioAsset(path=str(out_path), duration_sec=duration)
