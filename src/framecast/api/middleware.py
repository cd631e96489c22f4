"""Error handling middleware."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from framecast.models.errors import (
    ConfigurationError,
    ErrorResponse,
    FramecastError,
    ProviderError,
    RenderCancelledError,
    ValidationError,
)

logger = logging.getLogger(__name__)


async def framecast_error_handler(request: Request, exc: FramecastError) -> JSONResponse:
    """Handle FramecastError exceptions."""
    response = ErrorResponse.from_exception(
        exc, guidance=_get_guidance(exc), retry=_is_retryable(exc)
    )
    status_code = _get_status_code(exc)
    if status_code >= 500:
        logger.error("%s in %s: %s", type(exc).__name__, exc.component, exc.message)
    return JSONResponse(status_code=status_code, content=response.model_dump())


def _get_status_code(exc: FramecastError) -> int:
    """Map error type to HTTP status code."""
    if isinstance(exc, (ValidationError, ConfigurationError)):
        return 400
    elif isinstance(exc, RenderCancelledError):
        return 409
    elif isinstance(exc, ProviderError):
        return 502
    return 500


def _get_guidance(exc: FramecastError) -> str:
    """Generate actionable guidance based on error type."""
    if isinstance(exc, ValidationError):
        return "Check the job id and request parameters."
    if isinstance(exc, ConfigurationError):
        return "Check the scene name, frame pattern and provider settings."
    if isinstance(exc, ProviderError):
        return f"The {exc.provider} audio provider rejected the request; check its credentials."
    return "Check the server logs for the failing frame or encoder output."


def _is_retryable(exc: FramecastError) -> bool:
    """Determine if the error is retryable."""
    return isinstance(exc, (ProviderError, RenderCancelledError))
