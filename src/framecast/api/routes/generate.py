"""Audio generation endpoint."""

import uuid
from pathlib import Path

from fastapi import APIRouter, Depends

from framecast.api.dependencies import get_app_settings
from framecast.config import Settings
from framecast.models.audio import GeneratedAudio, GenerateRequest
from framecast.pipeline.generate import generate_audio

router = APIRouter(prefix="/api/v1", tags=["generate"])


@router.post("/generate", response_model=GeneratedAudio)
def generate(
    request: GenerateRequest,
    settings: Settings = Depends(get_app_settings),
):
    """Voice a script and return the retimed script, its audio timeline and narration."""
    output_dir = Path(settings.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    narration_path = output_dir / f"narration-{uuid.uuid4()}.wav"
    return generate_audio(request.script, request.audio, narration_path, settings=settings)
