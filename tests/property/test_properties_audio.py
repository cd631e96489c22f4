"""Property-based tests for the audio duration contract of dry-run providers."""

import math
import tempfile
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from framecast.audio.dry_run import (
    DEFAULT_WPM,
    MIN_SPEECH_SEC,
    DryRunSoundEffectProvider,
    DryRunSpeechProvider,
    estimate_speech_duration,
)
from framecast.audio.wav import wav_duration_sec, write_silence_wav
from framecast.models.audio import SoundEffectRequest, SpeechRequest
from tests.property.conftest import words

pytestmark = pytest.mark.property

sample_rates = st.sampled_from([8000, 16000, 22050, 24000, 44100, 48000])


class TestSpeechEstimateProperties:
    @given(text=st.lists(words, min_size=1, max_size=200).map(" ".join))
    @settings(max_examples=200)
    def test_estimate_formula(self, text):
        count = len(text.split())
        expected = max(MIN_SPEECH_SEC, count / DEFAULT_WPM * 60)
        assert estimate_speech_duration(text) == expected

    @given(text=st.text(alphabet=" \t\n", max_size=20))
    @settings(max_examples=50)
    def test_no_words_is_zero(self, text):
        assert estimate_speech_duration(text) == 0.0

    @given(
        text=st.lists(words, min_size=1, max_size=50).map(" ".join),
        extra=words,
    )
    @settings(max_examples=100)
    def test_more_words_never_shorter(self, text, extra):
        assert estimate_speech_duration(f"{text} {extra}") >= estimate_speech_duration(text)


class TestWrittenDurationProperties:
    @given(
        duration=st.floats(min_value=0.0, max_value=5.0, allow_nan=False),
        sample_rate=sample_rates,
    )
    @settings(max_examples=50, deadline=None)
    def test_written_duration_is_sample_ceiling(self, duration, sample_rate):
        """The returned duration is ceil(d * rate) / rate and matches the file."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "silence.wav"
            written = write_silence_wav(path, duration, sample_rate)
            assert written == math.ceil(duration * sample_rate) / sample_rate
            assert written >= duration - 1e-9
            assert wav_duration_sec(path) == written

    @given(text=st.lists(words, min_size=1, max_size=40).map(" ".join))
    @settings(max_examples=30, deadline=None)
    def test_speech_asset_reports_written_length(self, text):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "speech.wav"
            asset = DryRunSpeechProvider().generate(SpeechRequest(text=text), path)
            assert asset.duration_sec >= estimate_speech_duration(text) - 1e-9
            assert asset.duration_sec == wav_duration_sec(path)

    @given(
        duration=st.one_of(st.none(), st.floats(min_value=0.1, max_value=5.0)),
        seed=st.one_of(st.none(), st.integers(min_value=0, max_value=2**31)),
    )
    @settings(max_examples=30, deadline=None)
    def test_sfx_asset_keeps_seed(self, duration, seed):
        with tempfile.TemporaryDirectory() as tmp:
            request = SoundEffectRequest(prompt="whoosh", duration_sec=duration, seed=seed)
            asset = DryRunSoundEffectProvider().generate(request, Path(tmp) / "sfx.wav")
            assert asset.seed == seed
            assert asset.duration_sec > 0
