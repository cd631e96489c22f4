"""Detect the external tools a render depends on: ffmpeg and Playwright."""

import logging
import re
import subprocess
from importlib import metadata

from pydantic import BaseModel, Field

from framecast.config import get_settings
from framecast.models.errors import ConfigurationError

logger = logging.getLogger(__name__)

_FFMPEG_VERSION = re.compile(r"ffmpeg version\s+(\S+)", re.IGNORECASE)


class ToolStatus(BaseModel):
    name: str
    required: bool = False
    available: bool = False
    version: str | None = None
    expected: str | None = None
    ok: bool = True
    error: str | None = None


class ToolchainStatus(BaseModel):
    ok: bool
    issues: list[str] = Field(default_factory=list)
    ffmpeg: ToolStatus
    playwright: ToolStatus

    def format_issues(self) -> str:
        return "; ".join(self.issues)


def parse_ffmpeg_version(output: str) -> str | None:
    match = _FFMPEG_VERSION.search(output)
    return match.group(1) if match else None


def detect_ffmpeg(ffmpeg_path: str) -> tuple[str | None, str | None]:
    """Return ``(version, error)`` from running ``ffmpeg -version``."""
    try:
        result = subprocess.run(
            [ffmpeg_path, "-version"], capture_output=True, text=True, timeout=10
        )
    except FileNotFoundError:
        return None, f"ffmpeg not found at {ffmpeg_path}"
    except (OSError, subprocess.SubprocessError) as e:
        return None, str(e)
    version = parse_ffmpeg_version("\n".join(filter(None, [result.stdout, result.stderr])))
    if result.returncode != 0:
        return version, f"ffmpeg exited with code {result.returncode}"
    return version, None


def detect_playwright() -> str | None:
    """Installed Playwright package version, or None."""
    try:
        return metadata.version("playwright")
    except metadata.PackageNotFoundError:
        return None


def _check_expected(name: str, version: str | None, expected: str | None) -> list[str]:
    if not expected:
        return []
    if not version:
        return [f"{name} {expected} expected but not detected"]
    if version != expected:
        return [f"{name} version mismatch (expected {expected}, got {version})"]
    return []


def check_toolchain(
    ffmpeg_path: str | None = None,
    *,
    expected_ffmpeg_version: str | None = None,
    expected_playwright_version: str | None = None,
    require_ffmpeg: bool = False,
    require_playwright: bool = False,
) -> ToolchainStatus:
    """Report availability and versions of ffmpeg and Playwright.

    A tool is only checked strictly when it is required, either explicitly
    or by passing an expected version.
    """
    ffmpeg_path = ffmpeg_path or get_settings().ffmpeg_path
    ffmpeg_version, ffmpeg_error = detect_ffmpeg(ffmpeg_path)
    ffmpeg_required = require_ffmpeg or expected_ffmpeg_version is not None

    ffmpeg_issues: list[str] = []
    if ffmpeg_required:
        if ffmpeg_error:
            ffmpeg_issues.append(ffmpeg_error)
        elif not ffmpeg_version:
            ffmpeg_issues.append("ffmpeg version not detected")
        ffmpeg_issues.extend(_check_expected("ffmpeg", ffmpeg_version, expected_ffmpeg_version))

    playwright_version = detect_playwright()
    playwright_required = require_playwright or expected_playwright_version is not None
    playwright_error = None if playwright_version else "Playwright package not found"

    playwright_issues: list[str] = []
    if playwright_required:
        if playwright_error:
            playwright_issues.append(playwright_error)
        playwright_issues.extend(
            _check_expected("Playwright", playwright_version, expected_playwright_version)
        )

    issues = ffmpeg_issues + playwright_issues
    status = ToolchainStatus(
        ok=not issues,
        issues=issues,
        ffmpeg=ToolStatus(
            name=ffmpeg_path,
            required=ffmpeg_required,
            available=bool(ffmpeg_version) and not ffmpeg_error,
            version=ffmpeg_version,
            expected=expected_ffmpeg_version,
            ok=not ffmpeg_issues,
            error=ffmpeg_error,
        ),
        playwright=ToolStatus(
            name="playwright",
            required=playwright_required,
            available=playwright_version is not None,
            version=playwright_version,
            expected=expected_playwright_version,
            ok=not playwright_issues,
            error=playwright_error,
        ),
    )
    if issues:
        logger.warning("Toolchain issues: %s", status.format_issues())
    return status


def assert_toolchain(**kwargs) -> ToolchainStatus:
    """``check_toolchain`` that raises ``ConfigurationError`` on any issue."""
    status = check_toolchain(**kwargs)
    if not status.ok:
        raise ConfigurationError(
            status.format_issues() or "Renderer toolchain requirements not met.",
            details={"issues": status.issues},
        )
    return status
