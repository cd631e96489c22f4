"""Tests for the audio cache, environment fallback and frame store."""

import json
import time

import pytest

from framecast.audio.cache import AudioCache, cache_filename, cache_key
from framecast.audio.dry_run import DryRunSoundEffectProvider, DryRunSpeechProvider
from framecast.env import (
    ENV_FALLBACK_CHAIN,
    environment_fallback_chain,
    get_environment,
    resolve_env_cache_dir,
)
from framecast.models.audio import AudioAsset, SoundEffectRequest, SpeechRequest
from framecast.storage.frame_store import FrameStore


class CountingProvider(DryRunSpeechProvider):
    def __init__(self):
        super().__init__()
        self.calls = 0

    def generate(self, request, out_path):
        self.calls += 1
        return super().generate(request, out_path)


class TestEnvironment:
    def test_chain_from_known_env(self):
        assert environment_fallback_chain("azure") == ["azure", "production", "static"]
        assert environment_fallback_chain("development") == list(ENV_FALLBACK_CHAIN)

    def test_chain_from_unknown_env(self):
        assert environment_fallback_chain("staging") == ["staging", *ENV_FALLBACK_CHAIN]

    def test_current_environment(self, settings):
        settings.env = "aws"
        assert get_environment(settings) == "aws"
        settings.env = ""
        assert get_environment(settings) == "development"

    def test_cache_dir(self, tmp_dir):
        assert resolve_env_cache_dir(tmp_dir, "aws") == tmp_dir / "env" / "aws"


class TestCacheKey:
    def test_stable(self):
        same = SpeechRequest(text="hello", voice="v")
        assert cache_key("dry-run", same) == cache_key("dry-run", same.model_copy())

    def test_depends_on_provider_and_request(self):
        request = SpeechRequest(text="hello")
        assert cache_key("dry-run", request) != cache_key("openai", request)
        assert cache_key("dry-run", request) != cache_key("dry-run", SpeechRequest(text="bye"))

    def test_filename(self):
        assert cache_filename("intro", "abcdef0123456789", ".mp3") == "intro--abcdef012345.mp3"


class TestAudioCache:
    def test_generate_then_hit(self, tmp_dir):
        cache = AudioCache(tmp_dir, env="development")
        provider = CountingProvider()
        request = SpeechRequest(text="one two three")

        first = cache.generate_cached(provider, request, "speech", "line-1")
        second = cache.generate_cached(provider, request, "speech", "line-1")

        assert provider.calls == 1
        assert first == second
        assert first.path.startswith(str(tmp_dir / "env" / "development" / "speech"))

    def test_manifest_duration_is_trusted(self, tmp_dir):
        cache = AudioCache(tmp_dir, env="development")
        request = SpeechRequest(text="one two three")
        asset = cache.generate_cached(CountingProvider(), request, "speech", "line")

        manifest_path = tmp_dir / "env" / "development" / "manifest.json"
        manifest = json.loads(manifest_path.read_text())
        name = asset.path.rsplit("/", 1)[-1]
        manifest["speech"][name]["duration_sec"] = 99.0
        manifest_path.write_text(json.dumps(manifest))

        hit = cache.resolve("speech", cache_key("dry-run", request), name)
        assert hit.asset.duration_sec == 99.0

    def test_key_mismatch_is_a_miss(self, tmp_dir):
        cache = AudioCache(tmp_dir, env="development")
        asset = cache.generate_cached(
            CountingProvider(), SpeechRequest(text="a b"), "speech", "line"
        )
        name = asset.path.rsplit("/", 1)[-1]
        assert cache.resolve("speech", "not-the-key", name) is None

    def test_falls_back_to_later_environment(self, tmp_dir):
        request = SoundEffectRequest(prompt="whoosh", duration_sec=0.5)
        provider = DryRunSoundEffectProvider()
        production = AudioCache(tmp_dir, env="production")
        stored = production.generate_cached(provider, request, "sfx", "whoosh")

        aws = AudioCache(tmp_dir, env="aws")
        hit = aws.resolve("sfx", cache_key(provider.name, request), "whoosh--*.wav")
        assert hit is not None
        assert hit.env == "production"
        assert hit.asset == stored

    def test_no_fallback_to_earlier_environment(self, tmp_dir):
        request = SoundEffectRequest(prompt="whoosh")
        provider = DryRunSoundEffectProvider()
        AudioCache(tmp_dir, env="development").generate_cached(provider, request, "sfx", "w")

        static = AudioCache(tmp_dir, env="static")
        assert static.resolve("sfx", cache_key(provider.name, request), "w--*.wav") is None

    def test_corrupt_manifest_is_ignored(self, tmp_dir):
        cache = AudioCache(tmp_dir, env="development")
        cache.env_dir().mkdir(parents=True)
        (cache.env_dir() / "manifest.json").write_text("{not json")
        assert cache.load_manifest() == {}

    def test_malformed_entries_skipped(self, tmp_dir):
        cache = AudioCache(tmp_dir, env="development")
        cache.env_dir().mkdir(parents=True)
        (cache.env_dir() / "manifest.json").write_text(
            json.dumps(
                {
                    "speech": {
                        "ok.wav": {"key": "k", "duration_sec": 1.0},
                        "bad.wav": {"key": "k", "duration_sec": -1},
                    },
                    "music": "nope",
                }
            )
        )
        manifest = cache.load_manifest()
        assert list(manifest["speech"]) == ["ok.wav"]
        assert "music" not in manifest

    def test_store_records_seed(self, tmp_dir):
        cache = AudioCache(tmp_dir, env="development")
        cache.store("music", "key", AudioAsset(path=str(tmp_dir / "m.wav"), duration_sec=3, seed=9))
        assert cache.load_manifest()["music"]["m.wav"].seed == 9

    def test_unknown_kind(self, tmp_dir):
        with pytest.raises(ValueError):
            AudioCache(tmp_dir, env="development").kind_dir("voice")

    def test_clear(self, tmp_dir):
        cache = AudioCache(tmp_dir, env="development")
        cache.generate_cached(CountingProvider(), SpeechRequest(text="x"), "speech", "x")
        cache.clear()
        assert not cache.env_dir().exists()


class TestFrameStore:
    def test_frames_dir_created(self, tmp_dir):
        store = FrameStore(tmp_dir)
        frames = store.frames_dir("job-1")
        assert frames == tmp_dir / "job-1" / "frames"
        assert frames.is_dir()

    def test_cleanup_job(self, tmp_dir):
        store = FrameStore(tmp_dir)
        (store.frames_dir("job-1") / "frame-000000.png").write_bytes(b"x")
        store.cleanup_job("job-1")
        assert not (tmp_dir / "job-1").exists()
        assert store.get_job_dir("job-1") is None

    def test_cleanup_expired(self, tmp_dir):
        store = FrameStore(tmp_dir)
        store.create_job_dir("old")
        store.create_job_dir("new")
        old_dir, _ = store._job_dirs["old"]
        store._job_dirs["old"] = (old_dir, time.time() - 7200)
        assert store.cleanup_expired(ttl_seconds=3600) == 1
        assert not (tmp_dir / "old").exists()
        assert (tmp_dir / "new").exists()

    def test_cleanup_expired_skips_given_jobs(self, tmp_dir):
        store = FrameStore(tmp_dir)
        for job_id in ("running", "finished"):
            job_dir = store.create_job_dir(job_id)
            store._job_dirs[job_id] = (job_dir, time.time() - 7200)
        assert store.cleanup_expired(ttl_seconds=3600, skip={"running"}) == 1
        assert (tmp_dir / "running").exists()
        assert not (tmp_dir / "finished").exists()
