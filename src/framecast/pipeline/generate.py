"""Audio stage: voice the script, place SFX and music, write the narration track.

Cues are voiced in script order and laid end to end: each cue starts where
the previous one (plus the configured pause) ended, and scene bounds are
stretched to the cues they hold. Speech durations are the providers' real
playable lengths, so the retimed script and the narration WAV agree to the
sample.

SFX and music are generated and listed on the timeline only. They are not
mixed into the narration track.
"""

import copy
import hashlib
import json
import logging
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import librosa
import numpy as np

from framecast.audio.base import MusicProvider, SoundEffectProvider
from framecast.audio.cache import AudioCache
from framecast.audio.registry import get_music_provider, get_sfx_provider, get_speech_provider
from framecast.audio.wav import write_pcm_wav
from framecast.config import Settings, get_settings
from framecast.models.audio import (
    AudioAsset,
    AudioClipSpec,
    AudioPlan,
    GeneratedAudio,
    MusicRequest,
    SoundEffectRequest,
    SpeechRequest,
)
from framecast.models.errors import ConfigurationError, ValidationError
from framecast.models.pipeline import RenderRequest, RenderStage
from framecast.timing.frame_time import finite_number

logger = logging.getLogger(__name__)

MUSIC_MIN_SEC = 3.0
MUSIC_MAX_SEC = 600.0
SEED_MODULUS = 2147483647
PCM_MAX = 32767

_UNSAFE_STEM = re.compile(r"[^A-Za-z0-9_.-]+")


def safe_stem(*parts: Any) -> str:
    stem = "-".join(_UNSAFE_STEM.sub("-", str(p)).strip("-") for p in parts if p is not None)
    return stem or "clip"


def variant_seed(clip: AudioClipSpec, variant: int) -> int:
    """Deterministic per-variant seed derived from the clip's content."""
    payload = json.dumps(
        {
            "kind": clip.kind,
            "id": clip.id,
            "prompt": clip.prompt,
            "duration_sec": clip.duration_sec,
            "variant": variant,
        },
        sort_keys=True,
    )
    key = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    return int(key[:8], 16) % SEED_MODULUS


def clamp_music_duration(clip_id: str, seconds: float) -> float:
    if seconds > MUSIC_MAX_SEC:
        logger.info(
            "music: clamp clip=%s duration_seconds=%.1f -> %.1f", clip_id, seconds, MUSIC_MAX_SEC
        )
        return MUSIC_MAX_SEC
    if seconds < MUSIC_MIN_SEC:
        logger.info(
            "music: clamp clip=%s duration_seconds=%.2f -> %.1f", clip_id, seconds, MUSIC_MIN_SEC
        )
        return MUSIC_MIN_SEC
    return seconds


def declared_length(item: dict) -> float:
    """``endSec - startSec`` of a script entry, or 0 when either is missing."""
    start = finite_number(item.get("startSec"))
    end = finite_number(item.get("endSec"))
    if start is None or end is None:
        return 0.0
    return max(0.0, end - start)


def narration_samples(
    placed: list[tuple[float, AudioAsset]], total_sec: float, sample_rate: int
) -> np.ndarray:
    """16-bit mono buffer of ``total_sec`` with each segment at its start time.

    Segments are decoded at ``sample_rate`` and cut or padded to exactly
    their reported duration so later segments never drift.
    """
    buffer = np.zeros(round(total_sec * sample_rate), dtype=np.float32)
    for start_sec, asset in placed:
        length = round(asset.duration_sec * sample_rate)
        if length <= 0:
            continue
        y, _sr = librosa.load(asset.path, sr=sample_rate, mono=True)
        segment = np.zeros(length, dtype=np.float32)
        segment[: min(length, y.size)] = y[:length]
        offset = round(start_sec * sample_rate)
        end = min(buffer.size, offset + length)
        if end > offset:
            buffer[offset:end] = segment[: end - offset]
    return (np.clip(buffer, -1.0, 1.0) * PCM_MAX).astype(np.int16)


def _clip_provider(
    factory: Callable[..., Any],
    name: str | None,
    kind: str,
    settings: Settings,
    transport: httpx.BaseTransport | None,
):
    if name is None:
        return None
    try:
        return factory(name, settings, transport)
    except ConfigurationError as e:
        logger.warning(
            "%s provider %s unavailable, skipping %s clips: %s", kind, name, kind, e.message
        )
        return None


def _generate_clip(
    clip: AudioClipSpec,
    provider: SoundEffectProvider | MusicProvider,
    total_sec: float,
    plan: AudioPlan,
    cache: AudioCache,
) -> dict:
    if clip.kind == "music":
        desired = clip.duration_sec
        if desired is None:
            desired = total_sec - clip.start_sec
        if desired <= 0:
            raise ValidationError(
                f"Non-positive music duration for {clip.id!r}",
                details={"clip": clip.id, "duration_sec": desired},
            )
        desired = clamp_music_duration(clip.id, desired)

    assets: list[AudioAsset] = []
    for variant in range(clip.variants):
        seed = variant_seed(clip, variant)
        if clip.kind == "music":
            request = MusicRequest(
                prompt=clip.prompt,
                duration_seconds=desired,
                sample_rate_hz=plan.sample_rate_hz,
                seed=seed,
            )
        else:
            request = SoundEffectRequest(
                prompt=clip.prompt,
                duration_sec=clip.duration_sec,
                sample_rate_hz=plan.sample_rate_hz,
                seed=seed,
            )
        asset = cache.generate_cached(
            provider,
            request,
            clip.kind,
            f"{safe_stem(clip.id)}--v{variant + 1}",
            provider.file_extension(request),
        )
        assets.append(asset)
        logger.debug(
            "%s: clip=%s variant=%d/%d seed=%d %.3fs",
            clip.kind,
            clip.id,
            variant + 1,
            clip.variants,
            seed,
            asset.duration_sec,
        )

    chosen = assets[clip.pick]
    return {
        "id": clip.id,
        "kind": clip.kind,
        "startSec": clip.start_sec,
        "volume": clip.volume,
        "prompt": clip.prompt,
        "pick": clip.pick,
        "variants": clip.variants,
        "chosen": {"path": chosen.path, "durationSec": chosen.duration_sec, "seed": chosen.seed},
    }


def generate_audio(
    script: dict,
    plan: AudioPlan,
    narration_path: str | Path,
    *,
    settings: Settings | None = None,
    cache: AudioCache | None = None,
    transport: httpx.BaseTransport | None = None,
) -> GeneratedAudio:
    """Voice every cue of ``script`` and build its audio timeline.

    Raises:
        ConfigurationError: The speech provider is unknown or unconfigured.
        ProviderError: A provider failed to generate a segment or clip.
    """
    settings = settings or get_settings()
    cache = cache or AudioCache(settings.audio_cache_dir, env=settings.env)
    speech = get_speech_provider(plan.speech_provider, settings, transport)
    narration_path = Path(narration_path)

    out_script = copy.deepcopy(script) if isinstance(script, dict) else {}
    scenes = out_script.get("scenes")
    scenes = [s for s in scenes if isinstance(s, dict)] if isinstance(scenes, list) else []

    now = plan.lead_in_sec
    placed: list[tuple[float, AudioAsset]] = []
    first_cue = True
    for scene_index, scene in enumerate(scenes):
        scene["startSec"] = now
        cues = scene.get("cues")
        cues = [c for c in cues if isinstance(c, dict)] if isinstance(cues, list) else []
        for cue_index, cue in enumerate(cues):
            if not first_cue:
                now += plan.pause_between_cues_sec
            first_cue = False
            start = now
            text = str(cue.get("text") or "").strip()
            if text:
                request = SpeechRequest(
                    text=text, voice=plan.voice, sample_rate_hz=plan.sample_rate_hz
                )
                stem = safe_stem(scene.get("id", scene_index), cue.get("id", cue_index))
                asset = cache.generate_cached(
                    speech, request, "speech", stem, speech.file_extension(request)
                )
                placed.append((start, asset))
                now += asset.duration_sec
            else:
                now += declared_length(cue)
            cue["startSec"] = start
            cue["endSec"] = now
        if not cues:
            now += declared_length(scene)
        scene["endSec"] = now

    total = now
    meta = out_script.get("meta")
    if not isinstance(meta, dict):
        meta = out_script["meta"] = {}
    meta["durationSeconds"] = total

    samples = narration_samples(placed, total, plan.sample_rate_hz)
    duration = write_pcm_wav(narration_path, samples, plan.sample_rate_hz)
    narration = AudioAsset(path=str(narration_path), duration_sec=duration)
    logger.info(
        "Voiced %d cues with %s: %.2fs of narration in %s",
        len(placed),
        speech.name,
        duration,
        narration_path,
    )

    tracks: list[dict] = [
        {
            "id": "narration",
            "kind": "file",
            "clips": [
                {
                    "id": "narration",
                    "kind": "file",
                    "startSec": 0.0,
                    "durationSec": narration.duration_sec,
                    "src": narration.path,
                    "volume": 1.0,
                }
            ],
        }
    ]

    providers = {
        "sfx": _clip_provider(get_sfx_provider, plan.sfx_provider, "sfx", settings, transport),
        "music": _clip_provider(
            get_music_provider, plan.music_provider, "music", settings, transport
        ),
    }
    clips: dict[str, list[dict]] = {"sfx": [], "music": []}
    skipped: list[str] = []
    for clip in plan.clips:
        provider = providers[clip.kind]
        if provider is None:
            logger.info("%s: skip clip=%s (no provider)", clip.kind, clip.id)
            skipped.append(clip.id)
            continue
        clips[clip.kind].append(_generate_clip(clip, provider, total, plan, cache))
    for kind in ("sfx", "music"):
        if clips[kind]:
            tracks.append({"id": kind, "kind": kind, "clips": clips[kind]})

    return GeneratedAudio(
        script=out_script,
        timeline={"audio": {"tracks": tracks}},
        narration=narration,
        duration_sec=total,
        skipped_clips=skipped,
    )


def resolve_request_audio(
    request: RenderRequest,
    narration_path: str | Path,
    *,
    settings: Settings | None = None,
    on_stage: Callable[[RenderStage], None] | None = None,
) -> RenderRequest:
    """Run the audio stage of a request that carries an audio plan.

    Returns a request whose script, timeline and ``audio_path`` come from
    the generated audio; a request without a plan is returned unchanged.
    """
    if request.audio is None:
        return request
    if on_stage:
        on_stage(RenderStage.AUDIO)
    generated = generate_audio(request.script, request.audio, narration_path, settings=settings)
    return request.model_copy(
        update={
            "script": generated.script,
            "timeline": generated.timeline,
            "audio_path": generated.narration.path,
            "audio": None,
        }
    )
