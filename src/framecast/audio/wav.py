"""16-bit mono PCM WAV helpers."""

import math
import wave
from pathlib import Path

import numpy as np

SAMPLE_WIDTH = 2
WAV_HEADER_BYTES = 44


def silence_sample_count(duration_sec: float, sample_rate: int) -> int:
    return max(0, math.ceil(duration_sec * sample_rate))


def write_pcm_wav(path: Path, samples: np.ndarray | bytes, sample_rate: int) -> float:
    """Write 16-bit mono samples and return the written duration in seconds."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(samples, bytes):
        # Drop a trailing half sample
        data = samples[: len(samples) - (len(samples) % SAMPLE_WIDTH)]
    else:
        data = np.asarray(samples, dtype="<i2").tobytes()
    with wave.open(str(path), "w") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(SAMPLE_WIDTH)
        wav.setframerate(sample_rate)
        wav.writeframes(data)
    return (len(data) // SAMPLE_WIDTH) / sample_rate


def write_silence_wav(path: Path, duration_sec: float, sample_rate: int = 44100) -> float:
    """Write ``ceil(duration_sec * sample_rate)`` samples of silence.

    Returns the written duration, which is what a decoder will report.
    """
    samples = np.zeros(silence_sample_count(duration_sec, sample_rate), dtype=np.int16)
    return write_pcm_wav(path, samples, sample_rate)


def wav_duration_sec(path: Path) -> float:
    """Duration of the sample data present in a canonical WAV file.

    The header's frame count is ignored because streamed WAV responses
    leave it unset.
    """
    with wave.open(str(path), "r") as wav:
        rate = wav.getframerate()
        frame_bytes = wav.getnchannels() * wav.getsampwidth()
    if not rate or not frame_bytes:
        return 0.0
    data_bytes = max(0, path.stat().st_size - WAV_HEADER_BYTES)
    return (data_bytes // frame_bytes) / rate
