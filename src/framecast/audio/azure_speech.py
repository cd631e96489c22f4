"""Azure Speech text-to-speech provider over the REST endpoint."""

import html
import logging
from pathlib import Path

import httpx

from framecast.audio.base import SpeechProvider
from framecast.audio.probe import probe_duration_sec
from framecast.models.audio import AudioAsset, SpeechRequest
from framecast.models.errors import ProviderError

logger = logging.getLogger(__name__)

PROVIDER = "azure-speech"
ERROR_LIMIT = 400

OUTPUT_FORMATS = {
    44100: "riff-44100hz-16bit-mono-pcm",
    24000: "riff-24khz-16bit-mono-pcm",
    16000: "riff-16khz-16bit-mono-pcm",
    8000: "riff-8khz-16bit-mono-pcm",
}


def output_format(sample_rate: int) -> str:
    try:
        return OUTPUT_FORMATS[sample_rate]
    except KeyError:
        raise ProviderError(
            "Azure speech sample_rate_hz must be 8000, 16000, 24000, or 44100",
            provider=PROVIDER,
            details={"sample_rate_hz": sample_rate},
        )


def build_ssml(text: str, voice: str) -> str:
    return "\n".join(
        [
            "<speak version='1.0' xml:lang='en-US'>",
            f"  <voice name='{html.escape(voice, quote=True)}'>",
            f"    {html.escape(text, quote=False)}",
            "  </voice>",
            "</speak>",
        ]
    )


class AzureSpeechProvider(SpeechProvider):
    """Posts SSML to ``https://<region>.tts.speech.microsoft.com/cognitiveservices/v1``."""

    name = PROVIDER

    def __init__(
        self,
        api_key: str,
        region: str,
        voice: str = "en-US-JennyNeural",
        timeout: float = 120.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key
        self.region = region
        self.voice = voice
        self.timeout = timeout
        self.transport = transport

    @property
    def endpoint(self) -> str:
        return f"https://{self.region}.tts.speech.microsoft.com/cognitiveservices/v1"

    def generate(self, request: SpeechRequest, out_path: Path) -> AudioAsset:
        if not self.api_key or not self.region:
            raise ProviderError("Azure speech requires an API key and a region", provider=PROVIDER)
        if not request.text or not request.text.strip():
            raise ProviderError("Azure speech requires non-empty text", provider=PROVIDER)

        headers = {
            "Ocp-Apim-Subscription-Key": self.api_key,
            "Content-Type": "application/ssml+xml",
            "X-Microsoft-OutputFormat": output_format(request.sample_rate_hz),
            "User-Agent": "framecast",
        }
        body = build_ssml(request.text, request.voice or self.voice)
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(self.endpoint, content=body.encode("utf-8"), headers=headers)
        except httpx.HTTPError as e:
            raise ProviderError(f"Azure speech request failed: {e}", provider=PROVIDER)
        if not response.is_success:
            raise ProviderError(
                f"Azure speech failed ({response.status_code}): {response.text[:ERROR_LIMIT]}",
                provider=PROVIDER,
                details={"status_code": response.status_code},
            )

        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(response.content)
        duration = probe_duration_sec(out_path)
        logger.debug("Azure speech: %.3fs written to %s", duration, out_path)
        return AudioAsset(path=str(out_path), duration_sec=duration)
