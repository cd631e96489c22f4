"""Audio provider capabilities.

Every provider writes one file and returns an ``AudioAsset`` whose
``duration_sec`` is the real playable length of that file.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from framecast.models.audio import AudioAsset, MusicRequest, SoundEffectRequest, SpeechRequest


class SpeechProvider(ABC):
    name: str = ""

    @abstractmethod
    def generate(self, request: SpeechRequest, out_path: Path) -> AudioAsset:
        """Synthesize ``request.text`` into ``out_path``."""
        ...

    def file_extension(self, request: SpeechRequest) -> str:
        """Suffix of the file ``generate`` writes for ``request``."""
        return ".wav"


class SoundEffectProvider(ABC):
    name: str = ""

    @abstractmethod
    def generate(self, request: SoundEffectRequest, out_path: Path) -> AudioAsset:
        """Generate a sound effect for ``request.prompt`` into ``out_path``."""
        ...

    def file_extension(self, request: SoundEffectRequest) -> str:
        return ".wav"


class MusicProvider(ABC):
    name: str = ""

    @abstractmethod
    def generate(self, request: MusicRequest, out_path: Path) -> AudioAsset:
        """Generate ``request.duration_seconds`` of music into ``out_path``."""
        ...

    def file_extension(self, request: MusicRequest) -> str:
        return ".wav"
