"""Environment names and their fallback order."""

from pathlib import Path

from framecast.config import Settings, get_settings

ENV_FALLBACK_CHAIN = ("development", "aws", "azure", "production", "static")


def get_environment(settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    return settings.env or "development"


def environment_fallback_chain(current: str) -> list[str]:
    """Environments to consult, in order, starting from ``current``.

    A known environment yields the chain from its own position onward; an
    unknown one is consulted first, followed by the whole chain.
    """
    if current in ENV_FALLBACK_CHAIN:
        return list(ENV_FALLBACK_CHAIN[ENV_FALLBACK_CHAIN.index(current) :])
    return [current, *ENV_FALLBACK_CHAIN]


def resolve_env_cache_dir(base_dir: Path, env: str) -> Path:
    return base_dir / "env" / env
