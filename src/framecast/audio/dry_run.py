"""Deterministic dry-run providers that write silence of a predictable length.

They let the rest of the pipeline reason about timing without calling any
network service.
"""

import logging
from pathlib import Path

from framecast.audio.base import MusicProvider, SoundEffectProvider, SpeechProvider
from framecast.audio.wav import write_silence_wav
from framecast.models.audio import AudioAsset, MusicRequest, SoundEffectRequest, SpeechRequest

logger = logging.getLogger(__name__)

DEFAULT_WPM = 165.0
MIN_SPEECH_SEC = 0.25
DEFAULT_SFX_SEC = 0.4


def count_words(text: str) -> int:
    return len(text.split())


def estimate_speech_duration(text: str, wpm: float = DEFAULT_WPM) -> float:
    """Spoken length of ``text`` at ``wpm``, floored at an audible minimum; 0 for no words."""
    words = count_words(text)
    if words == 0:
        return 0.0
    return max(MIN_SPEECH_SEC, words / wpm * 60)


class DryRunSpeechProvider(SpeechProvider):
    name = "dry-run"

    def __init__(self, wpm: float = DEFAULT_WPM):
        if wpm <= 0:
            raise ValueError(f"wpm must be positive, got {wpm}")
        self.wpm = wpm

    def generate(self, request: SpeechRequest, out_path: Path) -> AudioAsset:
        estimate = estimate_speech_duration(request.text, self.wpm)
        duration = write_silence_wav(out_path, estimate, request.sample_rate_hz)
        logger.debug("Dry-run speech: %d words -> %.3fs", count_words(request.text), duration)
        return AudioAsset(path=str(out_path), duration_sec=duration)


class DryRunSoundEffectProvider(SoundEffectProvider):
    name = "dry-run"

    def generate(self, request: SoundEffectRequest, out_path: Path) -> AudioAsset:
        requested = request.duration_sec if request.duration_sec is not None else DEFAULT_SFX_SEC
        duration = write_silence_wav(out_path, requested, request.sample_rate_hz)
        return AudioAsset(path=str(out_path), duration_sec=duration, seed=request.seed)


class DryRunMusicProvider(MusicProvider):
    name = "dry-run"

    def generate(self, request: MusicRequest, out_path: Path) -> AudioAsset:
        duration = write_silence_wav(out_path, request.duration_seconds, request.sample_rate_hz)
        return AudioAsset(path=str(out_path), duration_sec=duration, seed=request.seed)
