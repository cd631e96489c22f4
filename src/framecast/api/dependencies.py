"""Dependency injection providers for FastAPI."""

from functools import lru_cache

from fastapi import Depends

from framecast.config import Settings, get_settings
from framecast.pipeline.manager import RenderManager
from framecast.rendering.toolchain import ToolchainStatus, check_toolchain


@lru_cache
def get_render_manager() -> RenderManager:
    return RenderManager()


def get_app_settings() -> Settings:
    return get_settings()


def get_toolchain_status(settings: Settings = Depends(get_app_settings)) -> ToolchainStatus:
    return check_toolchain(settings.ffmpeg_path, require_ffmpeg=True)
