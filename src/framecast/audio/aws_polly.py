"""Amazon Polly text-to-speech provider (raw PCM wrapped into WAV)."""

import logging
from pathlib import Path
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from framecast.audio.base import SpeechProvider
from framecast.audio.wav import write_pcm_wav
from framecast.models.audio import AudioAsset, SpeechRequest
from framecast.models.errors import ProviderError

logger = logging.getLogger(__name__)

PROVIDER = "aws-polly"
PCM_SAMPLE_RATES = (8000, 16000)
ERROR_LIMIT = 400


class PollySpeechProvider(SpeechProvider):
    """Synthesizes speech with ``polly.synthesize_speech`` in PCM output format.

    Polly only emits PCM at 8 or 16 kHz. The duration is taken from the
    number of samples received.
    """

    name = PROVIDER

    def __init__(
        self,
        client: Any = None,
        region: str = "us-east-1",
        voice_id: str = "Joanna",
        engine: str = "standard",
        language_code: str | None = None,
    ):
        self._client = client
        self.region = region
        self.voice_id = voice_id
        self.engine = engine
        self.language_code = language_code or None

    def _get_client(self):
        if self._client is None:
            try:
                self._client = boto3.client("polly", region_name=self.region)
            except BotoCoreError as e:
                raise ProviderError(
                    f"Failed to initialize Polly client: {e}",
                    provider=PROVIDER,
                    details={"region": self.region},
                )
        return self._client

    def generate(self, request: SpeechRequest, out_path: Path) -> AudioAsset:
        if not request.text or not request.text.strip():
            raise ProviderError("AWS Polly speech requires non-empty text", provider=PROVIDER)
        if request.sample_rate_hz not in PCM_SAMPLE_RATES:
            raise ProviderError(
                "AWS Polly PCM only supports sample_rate_hz "
                f"{', '.join(str(r) for r in PCM_SAMPLE_RATES)} (got {request.sample_rate_hz})",
                provider=PROVIDER,
                details={"sample_rate_hz": request.sample_rate_hz},
            )

        params: dict[str, Any] = {
            "Text": request.text,
            "OutputFormat": "pcm",
            "VoiceId": request.voice or self.voice_id,
            "SampleRate": str(request.sample_rate_hz),
            "Engine": self.engine,
        }
        if self.language_code:
            params["LanguageCode"] = self.language_code

        client = self._get_client()
        try:
            response = client.synthesize_speech(**params)
        except ClientError as e:
            error = e.response.get("Error", {})
            raise ProviderError(
                f"AWS Polly speech failed ({error.get('Code', 'unknown')}): "
                f"{str(error.get('Message', e))[:ERROR_LIMIT]}",
                provider=PROVIDER,
                details={"code": error.get("Code")},
            )
        except BotoCoreError as e:
            raise ProviderError(f"AWS Polly speech request failed: {e}", provider=PROVIDER)

        stream = response.get("AudioStream")
        if stream is None:
            raise ProviderError("AWS Polly response missing AudioStream", provider=PROVIDER)
        try:
            pcm = stream.read()
        finally:
            stream.close()

        duration = write_pcm_wav(out_path, pcm, request.sample_rate_hz)
        logger.debug("AWS Polly speech: %.3fs written to %s", duration, out_path)
        return AudioAsset(path=str(out_path), duration_sec=duration)
