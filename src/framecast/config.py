"""Application configuration using Pydantic BaseSettings."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """framecast configuration loaded from environment variables."""

    model_config = {"env_prefix": "FRAMECAST_", "env_file": ".env", "extra": "ignore"}

    # Environment name, consulted through the fallback chain in framecast.env
    env: str = "development"

    # Frame grid defaults
    default_fps: int = 30
    default_width: int = 1280
    default_height: int = 720

    # Frame rendering
    frame_pattern: str = "frame-%06d.png"
    render_workers: int = 0
    device_scale_factor: float = 1.0
    capture_timeout_ms: int = 30000

    # Encoding
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    output_video_codec: str = "libx264"
    output_audio_codec: str = "aac"
    output_audio_bitrate: str = "192k"
    output_pix_fmt: str = "yuv420p"
    output_crf: int = 23
    output_preset: str = "medium"
    diagnostic_max_chars: int = 800

    # Audio
    dry_run_wpm: float = 165.0
    mock_audio: bool = False

    # ElevenLabs
    elevenlabs_api_key: str = ""
    elevenlabs_base_url: str = "https://api.elevenlabs.io"
    elevenlabs_voice_id: str = ""
    elevenlabs_model_id: str = "eleven_multilingual_v2"
    elevenlabs_sfx_model_id: str = "eleven_text_to_sound_v2"
    elevenlabs_music_model_id: str = "music_v1"
    elevenlabs_output_format: str = ""

    # OpenAI
    openai_api_key: str = ""
    openai_tts_model: str = "gpt-4o-mini-tts"
    openai_tts_voice: str = "alloy"

    # Amazon Polly (credentials come from the standard AWS chain)
    aws_polly_region: str = "us-east-1"
    aws_polly_voice_id: str = "Joanna"
    aws_polly_engine: str = "standard"
    aws_polly_language_code: str = ""

    # Azure Speech
    azure_speech_key: str = ""
    azure_speech_region: str = ""
    azure_speech_voice: str = "en-US-JennyNeural"

    # Network
    provider_timeout_seconds: float = 120.0

    # Directories
    work_dir: Path = Path("/tmp/framecast/work")
    output_dir: Path = Path("/tmp/framecast/output")
    audio_cache_dir: Path = Path("/tmp/framecast/audio")
    keep_frames: bool = False
    frame_ttl_seconds: int = 3600

    # Redis / Celery
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"

    # Processing
    max_concurrent_jobs: int = 2

    # API server
    api_host: str = "0.0.0.0"
    api_port: int = 8000


def get_settings() -> Settings:
    """Return settings instance."""
    return Settings()
