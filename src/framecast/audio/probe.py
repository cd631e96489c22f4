"""Duration and activity probing of provider output using librosa."""

from pathlib import Path

import librosa
import numpy as np

SILENCE_THRESHOLD = 1e-3


def probe_duration_sec(path: Path) -> float:
    """Playable duration of any audio file librosa can decode."""
    return float(librosa.get_duration(path=str(path)))


def audio_activity_ratio(path: Path, probe_sec: float, sample_rate: int = 22050) -> float:
    """Fraction of samples in the first ``probe_sec`` above the silence threshold."""
    y, _sr = librosa.load(str(path), sr=sample_rate, mono=True, duration=probe_sec)
    if y.size == 0:
        return 0.0
    return float(np.count_nonzero(np.abs(y) > SILENCE_THRESHOLD) / y.size)
