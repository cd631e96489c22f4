"""Error hierarchy and error response models."""

from pydantic import BaseModel, Field


class FramecastError(Exception):
    """Base error for all framecast errors."""

    def __init__(self, message: str, component: str = "", details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.component = component
        self.details = details or {}


class ValidationError(FramecastError):
    """Request validation errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="validation", details=details)


class ConfigurationError(FramecastError):
    """Invalid configuration: unknown provider, missing credentials, bad pattern."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="configuration", details=details)


class ProviderError(FramecastError):
    """Failure scoped to a single audio provider."""

    def __init__(self, message: str, provider: str, details: dict | None = None):
        super().__init__(message, component="audio", details={"provider": provider, **(details or {})})
        self.provider = provider


class RenderingError(FramecastError):
    """Errors during frame rendering."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="rendering", details=details)


class FrameCaptureError(RenderingError):
    """A single frame could not be captured."""

    def __init__(self, frame_index: int, cause: BaseException | str):
        reason = str(cause) or type(cause).__name__
        super().__init__(
            f"Failed to capture frame {frame_index}: {reason}",
            details={"frame": frame_index, "cause": reason},
        )
        self.frame_index = frame_index
        self.cause = cause


class RenderCancelledError(RenderingError):
    """The frame worker pool was cancelled before finishing."""

    def __init__(self, message: str = "Render was cancelled", details: dict | None = None):
        super().__init__(message, details=details)


class EmptyFrameSequenceError(FramecastError):
    """No frames were produced, so there is nothing to encode."""

    def __init__(self, message: str = "No frames rendered.", details: dict | None = None):
        super().__init__(message, component="pipeline", details=details)


class EncodeError(FramecastError):
    """The external encoder failed or produced no usable output."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="encode", details=details)


class ErrorResponse(BaseModel):
    """Standardized error response for API."""

    error_type: str = Field(..., description="Error category")
    component: str = Field(default="", description="Component that raised the error")
    message: str = Field(..., description="Human-readable error message")
    details: dict = Field(default_factory=dict)
    actionable_guidance: str = Field(default="", description="Suggested user action")
    retry_possible: bool = Field(default=False)

    @classmethod
    def from_exception(
        cls, exc: FramecastError, guidance: str = "", retry: bool = False
    ) -> "ErrorResponse":
        return cls(
            error_type=type(exc).__name__,
            component=exc.component,
            message=exc.message,
            details=exc.details,
            actionable_guidance=guidance,
            retry_possible=retry,
        )


def truncate_diagnostic(text: str, limit: int) -> str:
    """Keep the tail of a tool's diagnostic output within ``limit`` characters."""
    if limit <= 0 or len(text) <= limit:
        return text
    return text[-limit:]
