"""Per-environment audio cache with fallback across environments.

Layout::

    <base_dir>/env/<env>/manifest.json
    <base_dir>/env/<env>/<kind>/<stem>--<key prefix><ext>

The manifest maps ``kind -> file name -> {key, duration_sec}``. A cached
file is only reused when its manifest key matches the request's key, and
its recorded duration is trusted without probing the file again.
"""

import fnmatch
import hashlib
import json
import logging
import shutil
import threading
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from framecast.audio.base import MusicProvider, SoundEffectProvider, SpeechProvider
from framecast.config import get_settings
from framecast.env import environment_fallback_chain, get_environment, resolve_env_cache_dir
from framecast.models.audio import AudioAsset, MusicRequest, SoundEffectRequest, SpeechRequest

logger = logging.getLogger(__name__)

KINDS = ("speech", "sfx", "music")
MANIFEST_NAME = "manifest.json"
KEY_PREFIX_LEN = 12

AnyProvider = SpeechProvider | SoundEffectProvider | MusicProvider
AnyRequest = SpeechRequest | SoundEffectRequest | MusicRequest


class CacheEntry(BaseModel):
    key: str = Field(..., min_length=1)
    duration_sec: float = Field(..., ge=0)
    seed: int | None = None


class CachedAudio(BaseModel):
    asset: AudioAsset
    env: str


def cache_key(provider_name: str, request: BaseModel) -> str:
    """Stable hash of a provider name and request contents."""
    payload = json.dumps(
        {"provider": provider_name, "request": request.model_dump(mode="json")},
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def cache_filename(stem: str, key: str, extension: str = ".wav") -> str:
    return f"{stem}--{key[:KEY_PREFIX_LEN]}{extension}"


class AudioCache:
    """Stores generated audio per environment and resolves it through the fallback chain."""

    def __init__(self, base_dir: Path | None = None, env: str | None = None):
        settings = get_settings()
        self.base_dir = Path(base_dir or settings.audio_cache_dir)
        self.env = env or get_environment(settings)
        self._lock = threading.Lock()

    def env_dir(self, env: str | None = None) -> Path:
        return resolve_env_cache_dir(self.base_dir, env or self.env)

    def kind_dir(self, kind: str, env: str | None = None) -> Path:
        if kind not in KINDS:
            raise ValueError(f"Unknown audio kind {kind!r}; expected one of {KINDS}")
        return self.env_dir(env) / kind

    def load_manifest(self, env: str | None = None) -> dict[str, dict[str, CacheEntry]]:
        """Read an environment's manifest; unreadable or malformed entries are ignored."""
        path = self.env_dir(env) / MANIFEST_NAME
        if not path.exists():
            return {}
        try:
            raw = json.loads(path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable cache manifest %s: %s", path, e)
            return {}
        if not isinstance(raw, dict):
            return {}

        manifest: dict[str, dict[str, CacheEntry]] = {}
        for kind, entries in raw.items():
            if not isinstance(entries, dict):
                continue
            section = manifest.setdefault(kind, {})
            for name, entry in entries.items():
                try:
                    section[name] = CacheEntry.model_validate(entry)
                except PydanticValidationError:
                    logger.debug("Skipping malformed manifest entry %s/%s", kind, name)
        return manifest

    def _save_manifest(self, manifest: dict[str, dict[str, CacheEntry]]) -> None:
        path = self.env_dir() / MANIFEST_NAME
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            kind: {name: entry.model_dump() for name, entry in entries.items()}
            for kind, entries in manifest.items()
        }
        path.write_text(json.dumps(data, indent=2, sort_keys=True))

    def resolve(self, kind: str, key: str, pattern: str) -> CachedAudio | None:
        """First cached file matching ``pattern`` whose manifest key equals ``key``."""
        for env in environment_fallback_chain(self.env):
            directory = self.kind_dir(kind, env)
            if not directory.is_dir():
                continue
            section = self.load_manifest(env).get(kind, {})
            for candidate in sorted(directory.iterdir()):
                if not candidate.is_file() or not fnmatch.fnmatchcase(candidate.name, pattern):
                    continue
                entry = section.get(candidate.name)
                if entry is None or entry.key != key:
                    continue
                if env != self.env:
                    logger.info("Cache fallback: %s %s from env=%s", kind, candidate.name, env)
                return CachedAudio(
                    asset=AudioAsset(
                        path=str(candidate), duration_sec=entry.duration_sec, seed=entry.seed
                    ),
                    env=env,
                )
        return None

    def store(self, kind: str, key: str, asset: AudioAsset) -> None:
        """Record ``asset`` in the current environment's manifest."""
        name = Path(asset.path).name
        with self._lock:
            manifest = self.load_manifest()
            manifest.setdefault(kind, {})[name] = CacheEntry(
                key=key, duration_sec=asset.duration_sec, seed=asset.seed
            )
            self._save_manifest(manifest)

    def generate_cached(
        self,
        provider: AnyProvider,
        request: AnyRequest,
        kind: str,
        stem: str,
        extension: str = ".wav",
    ) -> AudioAsset:
        """Return a cached asset for ``request`` or generate and cache a new one."""
        key = cache_key(provider.name, request)
        filename = cache_filename(stem, key, extension)
        hit = self.resolve(kind, key, filename)
        if hit is not None:
            return hit.asset

        out_path = self.kind_dir(kind) / filename
        out_path.parent.mkdir(parents=True, exist_ok=True)
        asset = provider.generate(request, out_path)
        self.store(kind, key, asset)
        logger.debug("Cached %s %s (%.3fs)", kind, filename, asset.duration_sec)
        return asset

    def clear(self, env: str | None = None) -> None:
        """Delete everything cached for one environment."""
        directory = self.env_dir(env)
        if directory.exists():
            shutil.rmtree(directory, ignore_errors=True)
            logger.info("Cleared audio cache for env %s", env or self.env)
