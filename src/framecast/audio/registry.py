"""Closed registries mapping provider names to audio providers."""

import logging

import httpx

from framecast.audio.aws_polly import PollySpeechProvider
from framecast.audio.azure_speech import AzureSpeechProvider
from framecast.audio.base import MusicProvider, SoundEffectProvider, SpeechProvider
from framecast.audio.dry_run import (
    DryRunMusicProvider,
    DryRunSoundEffectProvider,
    DryRunSpeechProvider,
)
from framecast.audio.elevenlabs import (
    ElevenLabsClient,
    ElevenLabsMusicProvider,
    ElevenLabsSoundEffectProvider,
    ElevenLabsSpeechProvider,
)
from framecast.audio.openai_tts import OpenAISpeechProvider
from framecast.config import Settings, get_settings
from framecast.models.errors import ConfigurationError

logger = logging.getLogger(__name__)

SPEECH_PROVIDERS = ("dry-run", "openai", "elevenlabs", "aws-polly", "azure-speech")
SPEECH_ALIASES = {"aws": "aws-polly", "azure": "azure-speech"}
SFX_PROVIDERS = ("dry-run", "elevenlabs")
MUSIC_PROVIDERS = ("dry-run", "elevenlabs")


def _unknown(kind: str, name: str, supported: tuple[str, ...]) -> ConfigurationError:
    return ConfigurationError(
        f'Unknown {kind} provider "{name}". Supported: {", ".join(supported)}',
        details={"provider": name, "supported": list(supported)},
    )


def _elevenlabs_client(
    settings: Settings, transport: httpx.BaseTransport | None = None
) -> ElevenLabsClient:
    if not settings.elevenlabs_api_key:
        raise ConfigurationError(
            "ElevenLabs requires FRAMECAST_ELEVENLABS_API_KEY",
            details={"provider": "elevenlabs"},
        )
    return ElevenLabsClient(
        api_key=settings.elevenlabs_api_key,
        base_url=settings.elevenlabs_base_url,
        timeout=settings.provider_timeout_seconds,
        transport=transport,
    )


def get_speech_provider(
    name: str,
    settings: Settings | None = None,
    transport: httpx.BaseTransport | None = None,
) -> SpeechProvider:
    settings = settings or get_settings()
    name = SPEECH_ALIASES.get(name, name)
    if name not in SPEECH_PROVIDERS:
        raise _unknown("speech", name, SPEECH_PROVIDERS)
    if name == "dry-run" or settings.mock_audio:
        if name != "dry-run":
            logger.info("Audio mocking enabled, using dry-run speech instead of %s", name)
        return DryRunSpeechProvider(wpm=settings.dry_run_wpm)

    if name == "openai":
        if not settings.openai_api_key:
            raise ConfigurationError(
                "OpenAI speech requires FRAMECAST_OPENAI_API_KEY", details={"provider": name}
            )
        return OpenAISpeechProvider(
            api_key=settings.openai_api_key,
            model=settings.openai_tts_model,
            voice=settings.openai_tts_voice,
            timeout=settings.provider_timeout_seconds,
        )

    if name == "aws-polly":
        if not settings.aws_polly_region:
            raise ConfigurationError(
                "AWS Polly speech requires FRAMECAST_AWS_POLLY_REGION", details={"provider": name}
            )
        return PollySpeechProvider(
            region=settings.aws_polly_region,
            voice_id=settings.aws_polly_voice_id,
            engine=settings.aws_polly_engine,
            language_code=settings.aws_polly_language_code or None,
        )

    if name == "azure-speech":
        if not settings.azure_speech_key or not settings.azure_speech_region:
            raise ConfigurationError(
                "Azure speech requires FRAMECAST_AZURE_SPEECH_KEY and "
                "FRAMECAST_AZURE_SPEECH_REGION",
                details={"provider": name},
            )
        return AzureSpeechProvider(
            api_key=settings.azure_speech_key,
            region=settings.azure_speech_region,
            voice=settings.azure_speech_voice,
            timeout=settings.provider_timeout_seconds,
            transport=transport,
        )

    if not settings.elevenlabs_voice_id:
        raise ConfigurationError(
            "ElevenLabs speech requires FRAMECAST_ELEVENLABS_VOICE_ID", details={"provider": name}
        )
    return ElevenLabsSpeechProvider(
        _elevenlabs_client(settings, transport),
        voice_id=settings.elevenlabs_voice_id,
        model_id=settings.elevenlabs_model_id,
        output_format=settings.elevenlabs_output_format or None,
    )


def get_sfx_provider(
    name: str,
    settings: Settings | None = None,
    transport: httpx.BaseTransport | None = None,
) -> SoundEffectProvider:
    settings = settings or get_settings()
    if name not in SFX_PROVIDERS:
        raise _unknown("SFX", name, SFX_PROVIDERS)
    if name == "dry-run" or settings.mock_audio:
        return DryRunSoundEffectProvider()
    return ElevenLabsSoundEffectProvider(
        _elevenlabs_client(settings, transport), model_id=settings.elevenlabs_sfx_model_id
    )


def get_music_provider(
    name: str,
    settings: Settings | None = None,
    transport: httpx.BaseTransport | None = None,
) -> MusicProvider:
    settings = settings or get_settings()
    if name not in MUSIC_PROVIDERS:
        raise _unknown("music", name, MUSIC_PROVIDERS)
    if name == "dry-run" or settings.mock_audio:
        return DryRunMusicProvider()
    return ElevenLabsMusicProvider(
        _elevenlabs_client(settings, transport), model_id=settings.elevenlabs_music_model_id
    )
