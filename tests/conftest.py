"""Shared test fixtures and test media generators."""

import math
import struct
import tempfile
import wave
from pathlib import Path

import pytest

from framecast.config import Settings


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


@pytest.fixture
def settings(tmp_dir):
    """Settings isolated from the environment, with every directory under tmp_dir."""
    return Settings(
        _env_file=None,
        env="development",
        work_dir=tmp_dir / "work",
        output_dir=tmp_dir / "output",
        audio_cache_dir=tmp_dir / "audio",
        render_workers=2,
        elevenlabs_api_key="",
        elevenlabs_voice_id="",
        openai_api_key="",
        mock_audio=False,
    )


@pytest.fixture
def sample_script():
    """Two scenes of captions, four seconds in total."""
    return {
        "fps": 10,
        "meta": {"width": 320, "height": 180, "durationSeconds": 3.0},
        "scenes": [
            {
                "id": "intro",
                "title": "Intro",
                "startSec": 0.0,
                "endSec": 2.0,
                "styles": {"background": "#102030"},
                "cues": [
                    {"id": "c1", "text": "Hello there", "startSec": 0.0, "endSec": 1.0},
                    {"id": "c2", "text": "Second line", "startSec": 1.0, "endSec": 2.0},
                ],
            },
            {
                "id": "outro",
                "startSec": 2.0,
                "endSec": 4.0,
                "cues": [{"id": "c3", "text": "Goodbye", "startSec": 2.5, "endSec": 4.0}],
            },
        ],
    }


@pytest.fixture
def sample_timeline():
    return {
        "audio": {
            "tracks": [
                {
                    "id": "voice",
                    "clips": [
                        {"startSec": 0.0, "durationSec": 1.5},
                        {"startSec": 2.0, "chosen": {"durationSec": 2.75}},
                    ],
                }
            ]
        }
    }


def generate_test_wav(
    path: Path, duration: float = 1.0, sample_rate: int = 22050, freq: float = 440.0
) -> Path:
    """Generate a simple test WAV file with a sine wave."""
    n_samples = int(duration * sample_rate)
    with wave.open(str(path), "w") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        for i in range(n_samples):
            t = i / sample_rate
            sample = int(32767 * 0.5 * math.sin(2 * math.pi * freq * t))
            wav.writeframes(struct.pack("<h", sample))
    return path


def generate_silent_wav(path: Path, duration: float = 1.0, sample_rate: int = 22050) -> Path:
    """Generate a silent WAV file."""
    n_samples = int(duration * sample_rate)
    with wave.open(str(path), "w") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(b"\x00\x00" * n_samples)
    return path
